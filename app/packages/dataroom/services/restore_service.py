"""回收站恢复：单项恢复、批量恢复，以及把回收站条目移动到指定文件夹。

单项恢复在一个事务内完成，要么整棵子树全部恢复，要么全部保持原状；
批量恢复逐项独立提交，某一项失败不影响其他项。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.core.constants import HTTP_STATUS_BAD_REQUEST
from app.packages.dataroom.core.enums import ItemTypeEnum
from app.packages.dataroom.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    RestorePathNotFoundError,
)
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.crud.documents import dataroom_document_crud
from app.packages.dataroom.crud.folders import folder_crud
from app.packages.dataroom.crud.trash_items import trash_item_crud
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.models.trash_item import TrashItem
from app.packages.dataroom.services.hierarchy import SubtreeEntry, collect_subtree
from app.packages.dataroom.utils.path_utils import build_folder_path, is_descendant_path, rebase_path

logger = get_logger("restore")


@dataclass
class RestoreResult:
    trash_id: int
    item_type: str
    item_id: int
    restored_folders: int = 0
    restored_documents: int = 0
    restored_with: Optional[int] = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class _CoveredItem:
    ancestor_id: int
    item_type: str
    item_id: int

    def as_result(self, trash_id: int) -> RestoreResult:
        return RestoreResult(
            trash_id=trash_id,
            item_type=self.item_type,
            item_id=self.item_id,
            restored_with=self.ancestor_id,
        )


@dataclass
class BulkRestoreReport:
    restored: list[RestoreResult] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "restored": [result.as_dict() for result in self.restored],
            "failed": list(self.failed),
            "restored_count": len(self.restored),
            "failed_count": len(self.failed),
        }


class RestoreService:
    def restore(self, db: Session, *, dataroom_id: int, trash_id: int) -> RestoreResult:
        try:
            result = self._restore_one(db, dataroom_id=dataroom_id, trash_id=trash_id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(
            "Restored trash item %s in dataroom %s (%d folders, %d documents)",
            trash_id,
            dataroom_id,
            result.restored_folders,
            result.restored_documents,
        )
        return result

    def bulk_restore(
        self,
        db: Session,
        *,
        dataroom_id: int,
        items: Iterable[tuple[int, Optional[str]]],
    ) -> BulkRestoreReport:
        """逐项恢复，每项单独提交；失败项记录 ``reason`` 与 ``message`` 后继续处理下一项。

        同批次中已选文件夹的下级条目延后处理：上级恢复成功时随之计入 ``restored``，
        并以 ``restored_with`` 标明所随的上级条目。
        """
        report = BulkRestoreReport()
        items = list(items)
        covered = self._covered_by_selection(db, dataroom_id, items)
        ordered = [entry for entry in items if entry[0] not in covered]
        ordered += [entry for entry in items if entry[0] in covered]
        restored_ids: set[int] = set()

        for trash_id, item_type in ordered:
            if trash_id in covered and covered[trash_id].ancestor_id in restored_ids:
                report.restored.append(covered[trash_id].as_result(trash_id))
                continue
            try:
                result = self._restore_one(db, dataroom_id=dataroom_id, trash_id=trash_id, expected_type=item_type)
                db.commit()
            except AppException as exc:
                db.rollback()
                report.failed.append(
                    {
                        "trash_id": trash_id,
                        "item_type": item_type,
                        "reason": exc.reason,
                        "message": exc.msg,
                        "code": exc.status_code,
                    }
                )
                continue
            except Exception:
                db.rollback()
                logger.exception("Unexpected error restoring trash item %s in dataroom %s", trash_id, dataroom_id)
                report.failed.append(
                    {
                        "trash_id": trash_id,
                        "item_type": item_type,
                        "reason": "error",
                        "message": "恢复失败",
                        "code": 500,
                    }
                )
                continue
            restored_ids.add(trash_id)
            report.restored.append(result)

        logger.info(
            "Bulk restore in dataroom %s: %d restored, %d failed",
            dataroom_id,
            len(report.restored),
            len(report.failed),
        )
        return report

    def move_to_folder(
        self,
        db: Session,
        *,
        dataroom_id: int,
        trash_ids: list[int],
        target_folder_id: Optional[int],
    ) -> dict[str, Any]:
        """把回收站条目恢复到指定的在线文件夹（``None`` 表示根目录），整批一个事务。"""
        if not trash_ids:
            raise AppException("未选择任何条目", HTTP_STATUS_BAD_REQUEST)
        try:
            moved = self._move_batch(db, dataroom_id=dataroom_id, trash_ids=trash_ids, target_folder_id=target_folder_id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Moved %d trash items into folder %s in dataroom %s", len(moved), target_folder_id, dataroom_id)
        return {"moved": moved, "target_folder_id": target_folder_id}

    # ------------------------------------------------------------------
    # 内部实现
    # ------------------------------------------------------------------

    def _restore_one(
        self,
        db: Session,
        *,
        dataroom_id: int,
        trash_id: int,
        expected_type: Optional[str] = None,
    ) -> RestoreResult:
        item = trash_item_crud.get_in_dataroom(db, dataroom_id=dataroom_id, trash_id=trash_id, for_update=True)
        if item is None or (expected_type is not None and item.item_type != expected_type):
            raise NotFoundError("回收站条目不存在")

        result = RestoreResult(trash_id=item.id, item_type=item.item_type, item_id=item.item_id)
        if item.is_folder:
            folder = self._load_folder(db, dataroom_id, item)
            self._ensure_parent_live(db, dataroom_id, folder.parent_id)
            for entry in collect_subtree(db, folder.id, dataroom_id):
                self._restore_entry(db, entry, dataroom_id)
                if entry.is_folder:
                    result.restored_folders += 1
                else:
                    result.restored_documents += 1
        else:
            document = self._load_document(db, dataroom_id, item)
            self._ensure_parent_live(db, dataroom_id, document.folder_id)
            document.removed_at = None
            db.add(document)
            db.delete(item)
            result.restored_documents = 1
        db.flush()
        return result

    def _restore_entry(self, db: Session, entry: SubtreeEntry, dataroom_id: int) -> None:
        entry.row.removed_at = None
        db.add(entry.row)
        if entry.trash_item is not None:
            db.delete(entry.trash_item)

    @staticmethod
    def _load_folder(db: Session, dataroom_id: int, item: TrashItem) -> DataroomFolder:
        folder = None
        if item.dataroom_folder_id is not None:
            folder = folder_crud.get_in_dataroom(db, dataroom_id=dataroom_id, folder_id=item.dataroom_folder_id)
        if folder is None:
            raise NotFoundError("回收站条目对应的文件夹不存在")
        return folder

    @staticmethod
    def _load_document(db: Session, dataroom_id: int, item: TrashItem):
        document = None
        if item.dataroom_document_id is not None:
            document = dataroom_document_crud.get_in_dataroom(
                db,
                dataroom_id=dataroom_id,
                dataroom_document_id=item.dataroom_document_id,
            )
        if document is None:
            raise NotFoundError("回收站条目对应的文档不存在")
        return document

    @staticmethod
    def _ensure_parent_live(db: Session, dataroom_id: int, parent_folder_id: Optional[int]) -> None:
        """原上级文件夹必须仍存在且不在回收站中；位于根目录的条目无需校验。"""
        if parent_folder_id is None:
            return
        parent = folder_crud.get_in_dataroom(db, dataroom_id=dataroom_id, folder_id=parent_folder_id)
        if parent is None or parent.removed_at is not None:
            raise RestorePathNotFoundError(data={"parent_folder_id": parent_folder_id})

    def _move_batch(
        self,
        db: Session,
        *,
        dataroom_id: int,
        trash_ids: list[int],
        target_folder_id: Optional[int],
    ) -> list[dict[str, Any]]:
        target: Optional[DataroomFolder] = None
        if target_folder_id is not None:
            target = folder_crud.get_in_dataroom(db, dataroom_id=dataroom_id, folder_id=target_folder_id, live_only=True)
            if target is None:
                raise AppException("目标文件夹不存在或已在回收站中", HTTP_STATUS_BAD_REQUEST)
        target_path = target.path if target is not None else ""

        items: list[TrashItem] = []
        for trash_id in dict.fromkeys(trash_ids):
            item = trash_item_crud.get_in_dataroom(db, dataroom_id=dataroom_id, trash_id=trash_id, for_update=True)
            if item is None:
                raise NotFoundError("回收站条目不存在", data={"trash_id": trash_id})
            items.append(item)

        # 已选文件夹的下级条目随上级一起移动
        selected_ids = {item.id for item in items}
        top_items = [item for item in items if self._selected_ancestor(db, item, selected_ids) is None]

        folders = [(item, self._load_folder(db, dataroom_id, item)) for item in top_items if item.is_folder]
        documents = [(item, self._load_document(db, dataroom_id, item)) for item in top_items if not item.is_folder]
        self._check_name_collisions(db, dataroom_id, target_folder_id, folders, documents)

        moved: list[dict[str, Any]] = []
        claimed_paths: set[str] = set()
        for item, folder in folders:
            if target is not None and (target.id == folder.id or is_descendant_path(target.path, folder.path)):
                raise AppException("不能移动到自身或其子文件夹中", HTTP_STATUS_BAD_REQUEST)
            old_root = folder.path
            new_root = build_folder_path(target_path, folder.name)
            entries = collect_subtree(db, folder.id, dataroom_id)
            moving_ids = {entry.item_id for entry in entries if entry.is_folder}
            for entry in entries:
                if entry.is_folder:
                    new_path = rebase_path(entry.path, old_root, new_root)
                    existing = folder_crud.get_by_path(db, dataroom_id=dataroom_id, path=new_path, live_only=False)
                    if new_path in claimed_paths or (existing is not None and existing.id not in moving_ids):
                        raise ConflictError(f"目标位置已存在路径 {new_path}", data={"path": new_path})
                    claimed_paths.add(new_path)
                    entry.row.path = new_path
                self._restore_entry(db, entry, dataroom_id)
            folder.parent_id = target_folder_id
            # 后续文件夹的路径校验需要看到本次改写
            db.flush()
            moved.append({"trash_id": item.id, "item_type": item.item_type, "item_id": folder.id, "path": new_root})

        for item, document in documents:
            document.folder_id = target_folder_id
            document.removed_at = None
            db.add(document)
            db.delete(item)
            moved.append({"trash_id": item.id, "item_type": item.item_type, "item_id": document.id, "path": None})

        db.flush()
        return moved

    @staticmethod
    def _selected_ancestor(db: Session, item: TrashItem, selected_ids: set[int]) -> Optional[int]:
        """沿回收站层级向上查找，返回最上层的已选祖先条目编号。"""
        found: Optional[int] = None
        seen: set[int] = set()
        parent_id = item.parent_id
        while parent_id is not None and parent_id not in seen:
            if parent_id in selected_ids:
                found = parent_id
            seen.add(parent_id)
            parent = trash_item_crud.get(db, parent_id)
            parent_id = parent.parent_id if parent is not None else None
        return found

    def _covered_by_selection(
        self,
        db: Session,
        dataroom_id: int,
        items: list[tuple[int, Optional[str]]],
    ) -> dict[int, _CoveredItem]:
        rows: dict[int, TrashItem] = {}
        for trash_id, item_type in items:
            item = trash_item_crud.get_in_dataroom(db, dataroom_id=dataroom_id, trash_id=trash_id)
            if item is not None and (item_type is None or item.item_type == item_type):
                rows[trash_id] = item

        selected_ids = set(rows)
        covered: dict[int, _CoveredItem] = {}
        for trash_id, item in rows.items():
            ancestor_id = self._selected_ancestor(db, item, selected_ids)
            if ancestor_id is not None:
                covered[trash_id] = _CoveredItem(ancestor_id, item.item_type, item.item_id)
        return covered

    @staticmethod
    def _check_name_collisions(
        db: Session,
        dataroom_id: int,
        target_folder_id: Optional[int],
        folders: list[tuple[TrashItem, DataroomFolder]],
        documents: list[tuple[TrashItem, Any]],
    ) -> None:
        """与目标文件夹中在线的同级条目重名（或本批次内部重名）时整批拒绝。"""
        if folders:
            taken = folder_crud.list_live_children_names(db, dataroom_id=dataroom_id, parent_id=target_folder_id)
            duplicates = _collect_duplicates([folder.name for _, folder in folders], taken)
            if duplicates:
                raise AppException(
                    f"目标文件夹中已存在同名文件夹：{', '.join(duplicates)}",
                    HTTP_STATUS_BAD_REQUEST,
                    {"duplicates": duplicates, "item_type": ItemTypeEnum.DATAROOM_FOLDER.value},
                )
        if documents:
            taken = dataroom_document_crud.list_live_names_in_folder(
                db,
                dataroom_id=dataroom_id,
                folder_id=target_folder_id,
            )
            duplicates = _collect_duplicates([document.name for _, document in documents], taken)
            if duplicates:
                raise AppException(
                    f"目标文件夹中已存在同名文档：{', '.join(duplicates)}",
                    HTTP_STATUS_BAD_REQUEST,
                    {"duplicates": duplicates, "item_type": ItemTypeEnum.DATAROOM_DOCUMENT.value},
                )


def _collect_duplicates(names: list[str], taken: set[str]) -> list[str]:
    seen = set(taken)
    duplicates: list[str] = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates


restore_service = RestoreService()
