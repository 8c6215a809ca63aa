"""Path utilities for dataroom folders.

Folder paths are materialized: ``/`` followed by the slug of each ancestor and
of the folder itself, e.g. ``/finance/q1-2024``. The root has the empty string as
its path key, so a top-level folder is ``"" + "/" + slug(name)``.
"""

from __future__ import annotations

import re
import unicodedata

from app.packages.dataroom.core.constants import EMPTY_SLUG_FALLBACK

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str | None) -> str:
    """Lowercase, ASCII-only, dash separated slug; never empty."""
    text = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    text = _CAMEL_BOUNDARY.sub(r"\1-\2", text).lower()
    text = _NON_ALNUM.sub("-", text).strip("-")
    return text or EMPTY_SLUG_FALLBACK


def norm_abs_path(p: str | None) -> str:
    s = (p or "/").strip() or "/"
    if not s.startswith("/"):
        s = "/" + s
    return s


def norm_dir_key(p: str | None) -> str:
    """Directory key without trailing slash; the root is ``''``."""
    s = norm_abs_path(p).rstrip("/")
    return "" if s == "/" else s


def build_folder_path(parent_path: str | None, name: str) -> str:
    """The single place where a folder path is derived from its parent and name."""
    return norm_dir_key(parent_path) + "/" + slugify(name)


def is_descendant_path(path: str, root_path: str) -> bool:
    """Separator aware prefix test: ``/a/b`` is under ``/a``, ``/ab`` is not."""
    return path.startswith(norm_dir_key(root_path) + "/")


def rebase_path(path: str, old_root: str, new_root: str) -> str:
    """Swap the ``old_root`` prefix of ``path`` (itself or a descendant) for ``new_root``."""
    if path == old_root:
        return new_root
    if not is_descendant_path(path, old_root):
        raise ValueError(f"{path!r} is not under {old_root!r}")
    return new_root + path[len(old_root):]


def like_prefix_pattern(prefix: str) -> str:
    """``LIKE`` pattern matching everything starting with ``prefix``; use with ``escape='\\\\'``."""
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped + "%"
