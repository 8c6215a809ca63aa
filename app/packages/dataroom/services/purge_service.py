"""永久清除：定时清理到期的回收站条目，以及用户触发的“立即删除”。

每个条目在独立事务中删除：文件夹先重新计算整棵子树（包括放入回收站之后才删除的条目），
再依次批量删除文档、文件夹和全部回收站条目。单个条目失败只回滚该条目并告警，清理继续进行。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.packages.dataroom.core.exceptions import NotFoundError
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.timezone import utc_now
from app.packages.dataroom.crud.folders import folder_crud
from app.packages.dataroom.crud.trash_items import trash_item_crud
from app.packages.dataroom.models.document import DataroomDocument
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.services.alert_service import alert_service
from app.packages.dataroom.services.hierarchy import collect_subtree

logger = get_logger("purge")


@dataclass
class PurgeReport:
    purged_count: int = 0
    total_expired: int = 0
    skipped_count: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "purged_count": self.purged_count,
            "total_expired": self.total_expired,
            "skipped_count": self.skipped_count,
            "errors": list(self.errors),
        }


class PurgeService:
    def purge_expired(self, db: Session, now: Optional[datetime] = None) -> PurgeReport:
        moment = now or utc_now()
        # 只保留标量快照，逐项提交后 ORM 对象会过期甚至已被删除
        expired = [
            (item.id, item.item_type, item.name, item.dataroom_id)
            for item in trash_item_crud.list_expired(db, now=moment)
        ]
        db.rollback()

        report = PurgeReport(total_expired=len(expired))
        for trash_id, item_type, name, dataroom_id in expired:
            try:
                purged = self._purge_trash_item(db, trash_id=trash_id, dataroom_id=None)
                db.commit()
            except Exception as exc:
                db.rollback()
                message = (
                    f"Failed to purge trash item {trash_id} ({item_type} '{name}') "
                    f"in dataroom {dataroom_id}: {exc}"
                )
                logger.exception(message)
                alert_service.log(message, type="cron", mention=True)
                report.errors.append(
                    {
                        "trash_id": trash_id,
                        "item_type": item_type,
                        "dataroom_id": dataroom_id,
                        "error": str(exc),
                    }
                )
                continue
            if purged:
                report.purged_count += 1
            else:
                report.skipped_count += 1

        summary = (
            f"Auto-purge completed: {report.purged_count}/{report.total_expired} items purged successfully"
            f" ({report.skipped_count} already removed, {len(report.errors)} failed)"
        )
        logger.info(summary)
        alert_service.log(summary, type="cron", mention=bool(report.errors))
        return report

    def purge_item(self, db: Session, *, dataroom_id: int, trash_id: int) -> dict[str, Any]:
        """不等到期，立即永久删除某个回收站条目（含整棵子树）。"""
        try:
            purged = self._purge_trash_item(db, trash_id=trash_id, dataroom_id=dataroom_id)
            if not purged:
                raise NotFoundError("回收站条目不存在")
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Trash item %s permanently deleted from dataroom %s", trash_id, dataroom_id)
        return {"trash_id": trash_id}

    def _purge_trash_item(self, db: Session, *, trash_id: int, dataroom_id: Optional[int]) -> bool:
        """删除条目及其下属数据；条目已不存在时返回 ``False``（视为已清除）。"""
        item = trash_item_crud.get_in_dataroom(db, dataroom_id=dataroom_id, trash_id=trash_id, for_update=True)
        if item is None:
            return False

        if not item.is_folder:
            if item.dataroom_document_id is not None:
                db.execute(
                    delete(DataroomDocument)
                    .where(DataroomDocument.id == item.dataroom_document_id)
                    .execution_options(synchronize_session=False)
                )
            trash_item_crud.delete_by_ids(db, [item.id])
            return True

        folder = None
        if item.dataroom_folder_id is not None:
            folder = folder_crud.get_in_dataroom(db, dataroom_id=item.dataroom_id, folder_id=item.dataroom_folder_id)
        if folder is None:
            # 文件夹行已不存在，只剩孤立的回收站条目
            trash_item_crud.delete_by_ids(db, [item.id])
            return True

        entries = collect_subtree(db, folder.id, item.dataroom_id)
        document_ids = [entry.item_id for entry in entries if not entry.is_folder]
        folder_ids = [entry.item_id for entry in entries if entry.is_folder]
        trash_ids = {entry.trash_item.id for entry in entries if entry.trash_item is not None}
        trash_ids.add(item.id)

        if document_ids:
            db.execute(
                delete(DataroomDocument)
                .where(DataroomDocument.id.in_(document_ids))
                .execution_options(synchronize_session=False)
            )
        db.execute(
            delete(DataroomFolder)
            .where(DataroomFolder.id.in_(folder_ids))
            .execution_options(synchronize_session=False)
        )
        trash_item_crud.delete_by_ids(db, trash_ids)
        logger.debug(
            "Purged folder %s: %d folders, %d documents, %d trash items",
            folder.id,
            len(folder_ids),
            len(document_ids),
            len(trash_ids),
        )
        return True


purge_service = PurgeService()
