"""层级遍历：列出一个文件夹及其下所有的文件夹与文档。

下级文件夹通过物化的 ``path`` 前缀一次查出，不逐级追溯 ``parent_id``；
全部查询都在调用方的会话中执行，快照属于调用方的事务。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.orm import Session

from app.packages.dataroom.core.enums import ItemTypeEnum
from app.packages.dataroom.core.exceptions import NotFoundError
from app.packages.dataroom.crud.documents import dataroom_document_crud
from app.packages.dataroom.crud.folders import folder_crud
from app.packages.dataroom.crud.trash_items import trash_item_crud
from app.packages.dataroom.models.document import DataroomDocument
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.models.trash_item import TrashItem


@dataclass
class SubtreeEntry:
    item_type: ItemTypeEnum
    item_id: int
    # folder: its parent folder; document: the folder it sits in
    folder_id: Optional[int]
    path: Optional[str]
    name: str
    row: Union[DataroomFolder, DataroomDocument]
    trash_item: Optional[TrashItem] = None

    @property
    def is_folder(self) -> bool:
        return self.item_type is ItemTypeEnum.DATAROOM_FOLDER


def collect_subtree(db: Session, folder_id: int, dataroom_id: int) -> list[SubtreeEntry]:
    """Return the folder, its descendant folders (parents before children) and then their documents.

    Raises ``NotFoundError`` when the folder does not exist in ``dataroom_id``.
    """
    root = folder_crud.get_in_dataroom(db, dataroom_id=dataroom_id, folder_id=folder_id)
    if root is None:
        raise NotFoundError("文件夹不存在")

    folders = [root, *folder_crud.list_descendants(db, dataroom_id=dataroom_id, root_path=root.path)]
    folder_ids = [folder.id for folder in folders]
    documents = dataroom_document_crud.list_in_folders(db, folder_ids)

    folder_trash = {item.dataroom_folder_id: item for item in trash_item_crud.list_for_folders(db, folder_ids)}
    document_trash = {
        item.dataroom_document_id: item
        for item in trash_item_crud.list_for_documents(db, [document.id for document in documents])
    }

    entries = [
        SubtreeEntry(
            item_type=ItemTypeEnum.DATAROOM_FOLDER,
            item_id=folder.id,
            folder_id=folder.parent_id,
            path=folder.path,
            name=folder.name,
            row=folder,
            trash_item=folder_trash.get(folder.id),
        )
        for folder in folders
    ]
    entries.extend(
        SubtreeEntry(
            item_type=ItemTypeEnum.DATAROOM_DOCUMENT,
            item_id=document.id,
            folder_id=document.folder_id,
            path=None,
            name=document.name,
            row=document,
            trash_item=document_trash.get(document.id),
        )
        for document in documents
    )
    return entries
