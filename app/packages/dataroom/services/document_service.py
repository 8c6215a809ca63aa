"""文档服务：创建团队文档并放入数据室（可指定文件夹）。"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.core.exceptions import NotFoundError
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.timezone import isoformat
from app.packages.dataroom.crud.documents import dataroom_document_crud, document_crud
from app.packages.dataroom.crud.folders import folder_crud
from app.packages.dataroom.models.document import DataroomDocument

logger = get_logger("documents")


class DocumentService:
    def add_document(
        self,
        db: Session,
        *,
        team_id: int,
        dataroom_id: int,
        name: str,
        type: Optional[str] = None,
        folder_id: Optional[int] = None,
    ) -> DataroomDocument:
        if folder_id is not None:
            folder = folder_crud.get_in_dataroom(db, dataroom_id=dataroom_id, folder_id=folder_id, live_only=True)
            if folder is None:
                raise NotFoundError("文件夹不存在或已在回收站中")

        try:
            document = document_crud.create(db, {"team_id": team_id, "name": name, "type": type}, auto_commit=False)
            placement = dataroom_document_crud.create(
                db,
                {"dataroom_id": dataroom_id, "document_id": document.id, "folder_id": folder_id},
                auto_commit=False,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(placement)
        logger.info("Document %s added to dataroom %s (folder %s)", document.id, dataroom_id, folder_id)
        return placement


def serialize_dataroom_document(item: DataroomDocument) -> dict[str, Any]:
    return {
        "id": item.id,
        "dataroom_id": item.dataroom_id,
        "document_id": item.document_id,
        "folder_id": item.folder_id,
        "name": item.name,
        "type": item.document.type if item.document is not None else None,
        "removed_at": isoformat(item.removed_at),
    }


document_service = DocumentService()
