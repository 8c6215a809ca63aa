"""文档及其数据室放置的数据访问。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.crud.base import CRUDBase
from app.packages.dataroom.models.document import DataroomDocument, Document


class CRUDDocument(CRUDBase[Document]):
    pass


class CRUDDataroomDocument(CRUDBase[DataroomDocument]):
    def get_in_dataroom(
        self,
        db: Session,
        *,
        dataroom_id: int,
        dataroom_document_id: int,
        live_only: bool = False,
    ) -> Optional[DataroomDocument]:
        query = self.query(db).filter(
            DataroomDocument.id == dataroom_document_id,
            DataroomDocument.dataroom_id == dataroom_id,
        )
        if live_only:
            query = query.filter(DataroomDocument.removed_at.is_(None))
        return query.first()

    def list_in_folders(self, db: Session, folder_ids: Iterable[int]) -> list[DataroomDocument]:
        id_list = list(folder_ids)
        if not id_list:
            return []
        return (
            self.query(db)
            .filter(DataroomDocument.folder_id.in_(id_list))
            .order_by(DataroomDocument.id.asc())
            .all()
        )

    def list_live(
        self,
        db: Session,
        *,
        dataroom_id: int,
        folder_id: Optional[int] = None,
    ) -> list[DataroomDocument]:
        query = self.query(db).filter(
            DataroomDocument.dataroom_id == dataroom_id,
            DataroomDocument.removed_at.is_(None),
        )
        if folder_id is None:
            query = query.filter(DataroomDocument.folder_id.is_(None))
        else:
            query = query.filter(DataroomDocument.folder_id == folder_id)
        return query.order_by(DataroomDocument.order_index.asc(), DataroomDocument.id.asc()).all()

    def list_live_names_in_folder(
        self,
        db: Session,
        *,
        dataroom_id: int,
        folder_id: Optional[int],
    ) -> set[str]:
        return {item.name for item in self.list_live(db, dataroom_id=dataroom_id, folder_id=folder_id)}


document_crud = CRUDDocument(Document)
dataroom_document_crud = CRUDDataroomDocument(DataroomDocument)
