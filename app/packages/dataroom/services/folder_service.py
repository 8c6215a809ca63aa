"""文件夹服务：创建（自动处理重名）与在线文件夹列表。"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.core.constants import FOLDER_NAME_MAX_RETRIES, HTTP_STATUS_BAD_REQUEST
from app.packages.dataroom.core.exceptions import AppException, NotFoundError
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.timezone import isoformat
from app.packages.dataroom.crud.folders import folder_crud
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.utils.path_utils import build_folder_path, norm_dir_key

logger = get_logger("folders")


class FolderService:
    def create_folder(
        self,
        db: Session,
        *,
        dataroom_id: int,
        name: str,
        path: Optional[str] = None,
    ) -> DataroomFolder:
        """在 ``path`` 指向的在线文件夹下（为空则在根目录）创建文件夹。

        目标路径已被任何文件夹占用（包括回收站中的）时，依次尝试 ``name (1)``、``name (2)``……
        这样回收站中的文件夹日后恢复时不会与新建文件夹发生路径冲突。
        """
        name = name.strip()
        if not name:
            raise AppException("文件夹名称不能为空", HTTP_STATUS_BAD_REQUEST)

        parent_path = norm_dir_key(path)
        parent: Optional[DataroomFolder] = None
        if parent_path:
            parent = folder_crud.get_by_path(db, dataroom_id=dataroom_id, path=parent_path, live_only=True)
            if parent is None:
                raise NotFoundError("上级文件夹不存在或已在回收站中")

        folder_name = name
        candidate = build_folder_path(parent_path, folder_name)
        counter = 1
        while folder_crud.path_exists(db, dataroom_id=dataroom_id, path=candidate):
            if counter > FOLDER_NAME_MAX_RETRIES:
                raise AppException("同名文件夹过多，请更换名称", HTTP_STATUS_BAD_REQUEST)
            folder_name = f"{name} ({counter})"
            candidate = build_folder_path(parent_path, folder_name)
            counter += 1

        folder = folder_crud.create(
            db,
            {
                "dataroom_id": dataroom_id,
                "parent_id": parent.id if parent is not None else None,
                "name": folder_name,
                "path": candidate,
            },
        )
        logger.info("Folder %s created at %s in dataroom %s", folder.id, candidate, dataroom_id)
        return folder

    def list_folders(self, db: Session, *, dataroom_id: int, root_only: bool = False) -> list[dict[str, Any]]:
        return [
            serialize_folder(folder)
            for folder in folder_crud.list_live(db, dataroom_id=dataroom_id, root_only=root_only)
        ]


def serialize_folder(folder: DataroomFolder) -> dict[str, Any]:
    return {
        "id": folder.id,
        "dataroom_id": folder.dataroom_id,
        "parent_id": folder.parent_id,
        "name": folder.name,
        "path": folder.path,
        "order_index": folder.order_index,
        "removed_at": isoformat(folder.removed_at),
    }


folder_service = FolderService()
