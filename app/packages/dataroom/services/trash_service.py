"""回收站索引：移入回收站时建立 ``TrashItem``，并按 ``parent_id`` 重建回收站目录树。"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.packages.dataroom.core.config import get_settings
from app.packages.dataroom.core.enums import ItemTypeEnum
from app.packages.dataroom.core.exceptions import NotFoundError
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.timezone import isoformat, utc_now
from app.packages.dataroom.crud.documents import dataroom_document_crud
from app.packages.dataroom.crud.folders import folder_crud
from app.packages.dataroom.crud.trash_items import trash_item_crud
from app.packages.dataroom.models.document import DataroomDocument
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.models.trash_item import TrashItem
from app.packages.dataroom.services.hierarchy import SubtreeEntry, collect_subtree
from app.packages.dataroom.utils.path_utils import rebase_path, slugify

logger = get_logger("trash")


class TrashService:
    def trash_folder(
        self,
        db: Session,
        *,
        dataroom_id: int,
        folder_id: int,
        user_id: Optional[int] = None,
    ) -> TrashItem:
        """将文件夹及其整棵子树移入回收站，返回文件夹自身的回收站条目。

        子树中此前已单独删除的条目保留原有记录（删除时间与到期时间不变），
        仅把 ``parent_id`` 重新指向所在文件夹的回收站条目。
        """
        folder = folder_crud.get_in_dataroom(db, dataroom_id=dataroom_id, folder_id=folder_id, live_only=True)
        if folder is None:
            raise NotFoundError("文件夹不存在或已在回收站中")

        try:
            entries = collect_subtree(db, folder.id, dataroom_id)
            deleted_at = utc_now()
            purge_at = deleted_at + get_settings().trash_retention
            root_trash_path = "/" + slugify(folder.name)
            folder_paths = {entry.item_id: entry.path for entry in entries if entry.is_folder}
            folder_items: dict[int, TrashItem] = {}
            root_item: Optional[TrashItem] = None

            for entry in entries:
                if entry.is_folder and entry.item_id == folder.id:
                    parent_item = None
                    trash_path = root_trash_path
                    full_path = entry.path
                elif entry.is_folder:
                    parent_item = folder_items.get(entry.folder_id, root_item)
                    trash_path = rebase_path(entry.path, folder.path, root_trash_path)
                    full_path = entry.path
                else:
                    parent_item = folder_items.get(entry.folder_id, root_item)
                    leaf = "/" + slugify(entry.name)
                    trash_path = (parent_item.trash_path if parent_item else root_trash_path) + leaf
                    full_path = (folder_paths.get(entry.folder_id) or "") + leaf

                item = self._index_entry(
                    db,
                    entry,
                    dataroom_id=dataroom_id,
                    parent_item=parent_item,
                    trash_path=trash_path,
                    full_path=full_path,
                    deleted_at=deleted_at,
                    purge_at=purge_at,
                    user_id=user_id,
                )
                if entry.is_folder:
                    folder_items[entry.item_id] = item
                    if root_item is None:
                        root_item = item

            self._mark_removed(db, entries, deleted_at)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Folder %s moved to trash in dataroom %s (%d entries)",
            folder_id,
            dataroom_id,
            len(entries),
        )
        db.refresh(root_item)
        return root_item

    def trash_document(
        self,
        db: Session,
        *,
        dataroom_id: int,
        dataroom_document_id: int,
        user_id: Optional[int] = None,
    ) -> TrashItem:
        document = dataroom_document_crud.get_in_dataroom(
            db,
            dataroom_id=dataroom_id,
            dataroom_document_id=dataroom_document_id,
            live_only=True,
        )
        if document is None:
            raise NotFoundError("文档不存在或已在回收站中")

        try:
            deleted_at = utc_now()
            leaf = "/" + slugify(document.name)
            parent_path = ""
            if document.folder_id is not None:
                folder = folder_crud.get(db, document.folder_id)
                parent_path = folder.path if folder is not None else ""
            item = TrashItem(
                item_id=document.id,
                item_type=ItemTypeEnum.DATAROOM_DOCUMENT.value,
                dataroom_id=dataroom_id,
                dataroom_document_id=document.id,
                parent_id=None,
                name=document.name,
                trash_path=leaf,
                full_path=parent_path + leaf,
                deleted_at=deleted_at,
                purge_at=deleted_at + get_settings().trash_retention,
                deleted_by=user_id,
            )
            db.add(item)
            document.removed_at = deleted_at
            db.add(document)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info("Document %s moved to trash in dataroom %s", dataroom_document_id, dataroom_id)
        db.refresh(item)
        return item

    def list_trash(self, db: Session, *, dataroom_id: int, root_only: bool = False) -> dict[str, Any]:
        items = trash_item_crud.list_for_dataroom(db, dataroom_id=dataroom_id, root_only=root_only)
        serialized = [serialize_trash_item(item) for item in items]
        if root_only:
            return {"items": serialized}
        return {"items": serialized, "tree": build_trash_tree(serialized)}

    def _index_entry(
        self,
        db: Session,
        entry: SubtreeEntry,
        *,
        dataroom_id: int,
        parent_item: Optional[TrashItem],
        trash_path: str,
        full_path: Optional[str],
        deleted_at: datetime,
        purge_at: datetime,
        user_id: Optional[int],
    ) -> TrashItem:
        parent_id = parent_item.id if parent_item is not None else None
        item = entry.trash_item
        if item is not None:
            item.parent_id = parent_id
            item.trash_path = trash_path
            db.add(item)
            return item

        item = TrashItem(
            item_id=entry.item_id,
            item_type=entry.item_type.value,
            dataroom_id=dataroom_id,
            dataroom_folder_id=entry.item_id if entry.is_folder else None,
            dataroom_document_id=None if entry.is_folder else entry.item_id,
            parent_id=parent_id,
            name=entry.name,
            trash_path=trash_path,
            full_path=full_path,
            deleted_at=deleted_at,
            purge_at=purge_at,
            deleted_by=user_id,
        )
        db.add(item)
        if entry.is_folder:
            # children reference this id
            db.flush()
        return item

    @staticmethod
    def _mark_removed(db: Session, entries: list[SubtreeEntry], deleted_at: datetime) -> None:
        folder_ids = [entry.item_id for entry in entries if entry.is_folder]
        document_ids = [entry.item_id for entry in entries if not entry.is_folder]
        db.execute(
            update(DataroomFolder)
            .where(DataroomFolder.id.in_(folder_ids), DataroomFolder.removed_at.is_(None))
            .values(removed_at=deleted_at)
            .execution_options(synchronize_session=False)
        )
        if document_ids:
            db.execute(
                update(DataroomDocument)
                .where(DataroomDocument.id.in_(document_ids), DataroomDocument.removed_at.is_(None))
                .values(removed_at=deleted_at)
                .execution_options(synchronize_session=False)
            )


def serialize_trash_item(item: TrashItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "item_id": item.item_id,
        "item_type": item.item_type,
        "parent_id": item.parent_id,
        "name": item.name,
        "trash_path": item.trash_path,
        "full_path": item.full_path,
        "dataroom_id": item.dataroom_id,
        "dataroom_folder_id": item.dataroom_folder_id,
        "dataroom_document_id": item.dataroom_document_id,
        "deleted_at": isoformat(item.deleted_at),
        "purge_at": isoformat(item.purge_at),
        "deleted_by": item.deleted_by,
    }


def build_trash_tree(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """按 ``parent_id`` 把扁平列表组装成树，保持输入顺序；父节点缺失的条目作为根节点。"""
    nodes: dict[int, dict[str, Any]] = {}
    for item in items:
        node = dict(item)
        if item["item_type"] == ItemTypeEnum.DATAROOM_FOLDER.value:
            node["child_folders"] = []
            node["documents"] = []
        nodes[item["id"]] = node

    roots: list[dict[str, Any]] = []
    for item in items:
        node = nodes[item["id"]]
        parent = nodes.get(item["parent_id"]) if item["parent_id"] is not None else None
        if parent is None or parent is node or "child_folders" not in parent:
            roots.append(node)
            continue
        if node["item_type"] == ItemTypeEnum.DATAROOM_FOLDER.value:
            parent["child_folders"].append(node)
        else:
            parent["documents"].append(node)
    return roots


trash_service = TrashService()
