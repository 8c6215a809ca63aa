"""安全模块：密码哈希、访问令牌签发/解析，以及定时任务请求签名校验。"""

import base64
import hashlib
from contextvars import ContextVar
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .constants import CRON_SIGNATURE_ISSUER
from .logger import logger


_refreshed_token_ctx: ContextVar[Optional[str]] = ContextVar("refreshed_token", default=None)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验明文密码与已存储哈希值是否匹配。"""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(subject: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """根据传入载荷生成带有过期时间的签名 JWT。"""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta else timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = subject.copy()
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解析访问令牌，过期由会话存储的滑动 TTL 控制，因此这里不校验 ``exp``。"""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as exc:  # pragma: no cover - logging side effect
        logger.warning("Failed to decode JWT: %s", exc)
        return None


def store_refreshed_token(token: Optional[str]) -> None:
    _refreshed_token_ctx.set(token)


def consume_refreshed_token() -> Optional[str]:
    """获取当前请求上下文中的刷新令牌。"""
    return _refreshed_token_ctx.get()


def body_digest(body: bytes) -> str:
    """计算请求体的 SHA-256 摘要，编码为去掉填充的 base64url。"""
    digest = hashlib.sha256(body).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def verify_cron_signature(
    signature: Optional[str],
    body: bytes,
    *,
    signing_keys: Optional[Iterable[str]] = None,
) -> bool:
    """校验 QStash 投递定时任务时附带的 ``Upstash-Signature``。

    签名本身是一个 HS256 JWT：依次尝试当前密钥与下一个密钥（支持轮换），
    要求签发方为 ``Upstash``，且 ``body`` 声明与原始请求体的摘要一致。
    任一条件不满足都返回 ``False``，由调用方决定响应 401。
    """
    if not signature:
        return False
    keys = list(signing_keys) if signing_keys is not None else get_settings().qstash_signing_keys
    if not keys:
        logger.warning("Cron signature verification enabled but no signing keys configured")
        return False

    expected = body_digest(body)
    for key in keys:
        try:
            claims = jwt.decode(
                signature,
                key,
                algorithms=["HS256"],
                issuer=CRON_SIGNATURE_ISSUER,
                options={"verify_aud": False},
            )
        except JWTError:
            continue
        claimed = str(claims.get("body") or "").rstrip("=")
        if claimed == expected:
            return True
        logger.warning("Cron signature body hash mismatch")
        return False
    return False
