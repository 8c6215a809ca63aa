"""数据室、文件夹与文档的请求与响应模型。"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.packages.dataroom.api.v1.schemas.common import ResponseEnvelope


class DataroomCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="数据室名称")


class DataroomData(BaseModel):
    id: int
    team_id: int
    name: str


class FolderCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="文件夹名称")
    path: Optional[str] = Field(default=None, description="上级文件夹路径，例如 finance/q1；为空表示根目录")

    @model_validator(mode="after")
    def _trim_fields(self) -> "FolderCreateRequest":
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("文件夹名称不能为空")
        if self.path is not None:
            self.path = self.path.strip().strip("/") or None
        return self


class FolderData(BaseModel):
    id: int
    dataroom_id: int
    parent_id: Optional[int] = None
    name: str
    path: str
    order_index: Optional[int] = None
    removed_at: Optional[str] = None


class DocumentCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="文档名称")
    type: Optional[str] = Field(default=None, max_length=50, description="文档类型，例如 pdf")
    folder_id: Optional[int] = Field(default=None, description="放入的文件夹 ID，为空表示根目录")


class DataroomDocumentData(BaseModel):
    id: int
    dataroom_id: int
    document_id: int
    folder_id: Optional[int] = None
    name: str
    type: Optional[str] = None
    removed_at: Optional[str] = None


DataroomResponse = ResponseEnvelope[DataroomData]
FolderResponse = ResponseEnvelope[FolderData]
FolderListResponse = ResponseEnvelope[list[FolderData]]
DataroomDocumentResponse = ResponseEnvelope[DataroomDocumentData]
