"""数据室文件夹数据访问。"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.crud.base import CRUDBase
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.utils.path_utils import like_prefix_pattern


class CRUDDataroomFolder(CRUDBase[DataroomFolder]):
    def get_in_dataroom(
        self,
        db: Session,
        *,
        dataroom_id: int,
        folder_id: int,
        live_only: bool = False,
    ) -> Optional[DataroomFolder]:
        query = self.query(db).filter(
            DataroomFolder.id == folder_id,
            DataroomFolder.dataroom_id == dataroom_id,
        )
        if live_only:
            query = query.filter(DataroomFolder.removed_at.is_(None))
        return query.first()

    def get_by_path(
        self,
        db: Session,
        *,
        dataroom_id: int,
        path: str,
        live_only: bool = True,
    ) -> Optional[DataroomFolder]:
        query = self.query(db).filter(
            DataroomFolder.dataroom_id == dataroom_id,
            DataroomFolder.path == path,
        )
        if live_only:
            query = query.filter(DataroomFolder.removed_at.is_(None))
        return query.first()

    def path_exists(self, db: Session, *, dataroom_id: int, path: str) -> bool:
        """任意行（含回收站中的）占用该路径即视为已存在。"""
        return self.get_by_path(db, dataroom_id=dataroom_id, path=path, live_only=False) is not None

    def list_live(
        self,
        db: Session,
        *,
        dataroom_id: int,
        root_only: bool = False,
    ) -> list[DataroomFolder]:
        query = self.query(db).filter(
            DataroomFolder.dataroom_id == dataroom_id,
            DataroomFolder.removed_at.is_(None),
        )
        if root_only:
            query = query.filter(DataroomFolder.parent_id.is_(None))
        return query.order_by(DataroomFolder.order_index.asc(), DataroomFolder.name.asc()).all()

    def list_live_children_names(
        self,
        db: Session,
        *,
        dataroom_id: int,
        parent_id: Optional[int],
    ) -> set[str]:
        query = db.query(DataroomFolder.name).filter(
            DataroomFolder.dataroom_id == dataroom_id,
            DataroomFolder.removed_at.is_(None),
        )
        if parent_id is None:
            query = query.filter(DataroomFolder.parent_id.is_(None))
        else:
            query = query.filter(DataroomFolder.parent_id == parent_id)
        return {row[0] for row in query.all()}

    def list_descendants(self, db: Session, *, dataroom_id: int, root_path: str) -> list[DataroomFolder]:
        """按路径前缀取出全部后代文件夹（不含根本身）。

        SQL 端的 ``LIKE`` 在部分数据库上不区分大小写，结果再用带分隔符的前缀校验一遍，
        保证 ``/a`` 不会匹配到 ``/ab``。
        """
        prefix = root_path.rstrip("/") + "/"
        rows = (
            self.query(db)
            .filter(
                DataroomFolder.dataroom_id == dataroom_id,
                DataroomFolder.path.like(like_prefix_pattern(prefix), escape="\\"),
            )
            .order_by(DataroomFolder.path.asc())
            .all()
        )
        return [row for row in rows if row.path.startswith(prefix)]


folder_crud = CRUDDataroomFolder(DataroomFolder)
