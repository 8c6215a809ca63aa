"""回收站相关的请求与响应模型。"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from app.packages.dataroom.api.v1.schemas.common import ResponseEnvelope
from app.packages.dataroom.core.enums import ItemTypeEnum


class TrashItemData(BaseModel):
    id: int
    item_id: int
    item_type: ItemTypeEnum
    parent_id: Optional[int] = None
    name: str
    trash_path: str
    full_path: Optional[str] = None
    dataroom_id: int
    dataroom_folder_id: Optional[int] = None
    dataroom_document_id: Optional[int] = None
    deleted_at: Optional[str] = None
    purge_at: Optional[str] = None
    deleted_by: Optional[int] = None


class TrashTreeNode(TrashItemData):
    child_folders: Optional[list["TrashTreeNode"]] = None
    documents: Optional[list["TrashTreeNode"]] = None


TrashTreeNode.model_rebuild()


class TrashListData(BaseModel):
    items: list[TrashItemData]
    tree: Optional[list[TrashTreeNode]] = None


class RestoreResultData(BaseModel):
    trash_id: int
    item_type: ItemTypeEnum
    item_id: int
    restored_folders: int
    restored_documents: int
    restored_with: Optional[int] = Field(default=None, description="随同恢复的上级回收站条目 ID")


class BulkRestoreItem(BaseModel):
    id: int = Field(..., description="回收站条目 ID")
    item_type: Optional[ItemTypeEnum] = Field(default=None, description="条目类型，与实际不符时按不存在处理")


class BulkRestoreRequest(BaseModel):
    items: list[BulkRestoreItem] = Field(..., min_length=1)


class BulkRestoreFailure(BaseModel):
    trash_id: int
    item_type: Optional[str] = None
    reason: str
    message: str
    code: int


class BulkRestoreData(BaseModel):
    restored: list[RestoreResultData]
    failed: list[BulkRestoreFailure]
    restored_count: int
    failed_count: int


class MoveTrashItemsRequest(BaseModel):
    trash_item_ids: list[int] = Field(..., min_length=1, description="回收站条目 ID 列表")
    target_folder_id: Optional[int] = Field(default=None, description="目标文件夹 ID，为空表示根目录")

    @model_validator(mode="after")
    def _dedupe_ids(self) -> "MoveTrashItemsRequest":
        self.trash_item_ids = list(dict.fromkeys(self.trash_item_ids))
        return self


class MoveTrashItemsData(BaseModel):
    moved: list[dict[str, Any]]
    target_folder_id: Optional[int] = None


class PurgeItemData(BaseModel):
    trash_id: int


TrashItemResponse = ResponseEnvelope[TrashItemData]
TrashListResponse = ResponseEnvelope[TrashListData]
RestoreResponse = ResponseEnvelope[RestoreResultData]
BulkRestoreResponse = ResponseEnvelope[BulkRestoreData]
MoveTrashItemsResponse = ResponseEnvelope[MoveTrashItemsData]
PurgeItemResponse = ResponseEnvelope[PurgeItemData]
