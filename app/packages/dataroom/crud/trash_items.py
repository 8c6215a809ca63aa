"""回收站索引数据访问。"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import case, delete
from sqlalchemy.orm import Session

from app.packages.dataroom.core.enums import ItemTypeEnum
from app.packages.dataroom.crud.base import CRUDBase
from app.packages.dataroom.models.trash_item import TrashItem


class CRUDTrashItem(CRUDBase[TrashItem]):
    def get_in_dataroom(
        self,
        db: Session,
        *,
        dataroom_id: Optional[int],
        trash_id: int,
        for_update: bool = False,
    ) -> Optional[TrashItem]:
        """按 ID 读取回收站条目；``dataroom_id`` 为 ``None`` 时不限定数据室（定时清理使用）。

        ``for_update`` 在支持的数据库上发出 ``SELECT ... FOR UPDATE``，SQLite 会忽略该子句。
        """
        query = self.query(db).filter(TrashItem.id == trash_id)
        if dataroom_id is not None:
            query = query.filter(TrashItem.dataroom_id == dataroom_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def list_for_dataroom(self, db: Session, *, dataroom_id: int, root_only: bool = False) -> list[TrashItem]:
        query = self.query(db).filter(TrashItem.dataroom_id == dataroom_id)
        if root_only:
            query = query.filter(TrashItem.parent_id.is_(None))
        return query.order_by(TrashItem.deleted_at.desc(), TrashItem.name.asc()).all()

    def list_for_folders(self, db: Session, folder_ids: Iterable[int]) -> list[TrashItem]:
        id_list = list(folder_ids)
        if not id_list:
            return []
        return (
            self.query(db)
            .filter(
                TrashItem.item_type == ItemTypeEnum.DATAROOM_FOLDER.value,
                TrashItem.dataroom_folder_id.in_(id_list),
            )
            .all()
        )

    def list_for_documents(self, db: Session, dataroom_document_ids: Iterable[int]) -> list[TrashItem]:
        id_list = list(dataroom_document_ids)
        if not id_list:
            return []
        return (
            self.query(db)
            .filter(
                TrashItem.item_type == ItemTypeEnum.DATAROOM_DOCUMENT.value,
                TrashItem.dataroom_document_id.in_(id_list),
            )
            .all()
        )

    def list_expired(self, db: Session, *, now: datetime) -> list[TrashItem]:
        """到期条目（``purge_at <= now``），文件夹优先，其次按删除时间从早到晚。"""
        folders_first = case((TrashItem.item_type == ItemTypeEnum.DATAROOM_FOLDER.value, 0), else_=1)
        return (
            self.query(db)
            .filter(TrashItem.purge_at <= now)
            .order_by(folders_first.asc(), TrashItem.deleted_at.asc(), TrashItem.id.asc())
            .all()
        )

    def delete_by_ids(self, db: Session, ids: Iterable[int]) -> int:
        id_list = list(ids)
        if not id_list:
            return 0
        result = db.execute(
            delete(TrashItem).where(TrashItem.id.in_(id_list)).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


trash_item_crud = CRUDTrashItem(TrashItem)
