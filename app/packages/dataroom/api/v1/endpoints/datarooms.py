"""数据室、文件夹与文档相关的路由定义。"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.packages.dataroom.api.v1.endpoints._oplog import error_text, record_operation
from app.packages.dataroom.api.v1.schemas.datarooms import (
    DataroomCreateRequest,
    DataroomDocumentResponse,
    DataroomResponse,
    DocumentCreateRequest,
    FolderCreateRequest,
    FolderListResponse,
    FolderResponse,
)
from app.packages.dataroom.api.v1.schemas.trash import TrashItemResponse
from app.packages.dataroom.core.constants import HTTP_STATUS_CREATED, HTTP_STATUS_OK
from app.packages.dataroom.core.dependencies import (
    get_dataroom_context,
    get_db,
    get_team_context,
    require_dataroom_manager,
)
from app.packages.dataroom.core.enums import OperationLogTypeEnum
from app.packages.dataroom.core.guards import TeamContext
from app.packages.dataroom.core.responses import create_response
from app.packages.dataroom.core.timezone import now as tz_now
from app.packages.dataroom.services.dataroom_service import dataroom_service, serialize_dataroom
from app.packages.dataroom.services.document_service import document_service, serialize_dataroom_document
from app.packages.dataroom.services.folder_service import folder_service, serialize_folder
from app.packages.dataroom.services.trash_service import serialize_trash_item, trash_service

router = APIRouter(prefix="/teams/{team_id}/datarooms", tags=["datarooms"])

_MODULE = "数据室管理"


@router.post("", response_model=DataroomResponse, status_code=HTTP_STATUS_CREATED)
def create_dataroom(
    payload: DataroomCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_team_context),
) -> DataroomResponse:
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None
    created_id: Optional[int] = None

    try:
        dataroom = dataroom_service.create_dataroom(db, team_id=context.team_id, name=payload.name)
        created_id = dataroom.id
        response_payload = create_response("创建数据室成功", serialize_dataroom(dataroom), HTTP_STATUS_CREATED)
        return response_payload
    except Exception as exc:
        status = "failure"
        error_message = error_text(exc)
        raise
    finally:
        record_operation(
            db=db,
            request=request,
            context=context,
            dataroom_id=created_id,
            module=_MODULE,
            business_type=OperationLogTypeEnum.CREATE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.datarooms.create_dataroom",
            request_body=payload.model_dump(),
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.get("/{dataroom_id}/folders", response_model=FolderListResponse)
def list_folders(
    root: bool = Query(False, description="仅返回根目录下的文件夹"),
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> FolderListResponse:
    folders = folder_service.list_folders(db, dataroom_id=context.dataroom_id, root_only=root)
    return create_response("获取文件夹列表成功", folders, HTTP_STATUS_OK)


@router.post("/{dataroom_id}/folders", response_model=FolderResponse, status_code=HTTP_STATUS_CREATED)
def create_folder(
    payload: FolderCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> FolderResponse:
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        folder = folder_service.create_folder(db, dataroom_id=dataroom_id, name=payload.name, path=payload.path)
        response_payload = create_response("创建文件夹成功", serialize_folder(folder), HTTP_STATUS_CREATED)
        return response_payload
    except Exception as exc:
        status = "failure"
        error_message = error_text(exc)
        raise
    finally:
        record_operation(
            db=db,
            request=request,
            context=context,
            dataroom_id=dataroom_id,
            module=_MODULE,
            business_type=OperationLogTypeEnum.CREATE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.datarooms.create_folder",
            request_body=payload.model_dump(),
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.delete("/{dataroom_id}/folders/manage/{folder_id}", response_model=TrashItemResponse)
def trash_folder(
    folder_id: int,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(require_dataroom_manager),
) -> TrashItemResponse:
    """将文件夹及其全部内容移入回收站。"""
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        item = trash_service.trash_folder(
            db,
            dataroom_id=dataroom_id,
            folder_id=folder_id,
            user_id=context.user.id,
        )
        response_payload = create_response("文件夹已移入回收站", serialize_trash_item(item), HTTP_STATUS_OK)
        return response_payload
    except Exception as exc:
        status = "failure"
        error_message = error_text(exc)
        raise
    finally:
        record_operation(
            db=db,
            request=request,
            context=context,
            dataroom_id=dataroom_id,
            module=_MODULE,
            business_type=OperationLogTypeEnum.DELETE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.datarooms.trash_folder",
            request_body={"folder_id": folder_id},
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.post("/{dataroom_id}/documents", response_model=DataroomDocumentResponse, status_code=HTTP_STATUS_CREATED)
def add_document(
    payload: DocumentCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> DataroomDocumentResponse:
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        placement = document_service.add_document(
            db,
            team_id=context.team_id,
            dataroom_id=dataroom_id,
            name=payload.name,
            type=payload.type,
            folder_id=payload.folder_id,
        )
        response_payload = create_response(
            "添加文档成功",
            serialize_dataroom_document(placement),
            HTTP_STATUS_CREATED,
        )
        return response_payload
    except Exception as exc:
        status = "failure"
        error_message = error_text(exc)
        raise
    finally:
        record_operation(
            db=db,
            request=request,
            context=context,
            dataroom_id=dataroom_id,
            module=_MODULE,
            business_type=OperationLogTypeEnum.CREATE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.datarooms.add_document",
            request_body=payload.model_dump(),
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.delete("/{dataroom_id}/documents/{document_id}", response_model=TrashItemResponse)
def trash_document(
    document_id: int,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(require_dataroom_manager),
) -> TrashItemResponse:
    """将数据室中的文档移入回收站；``document_id`` 为数据室文档（放置记录）的 ID。"""
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        item = trash_service.trash_document(
            db,
            dataroom_id=dataroom_id,
            dataroom_document_id=document_id,
            user_id=context.user.id,
        )
        response_payload = create_response("文档已移入回收站", serialize_trash_item(item), HTTP_STATUS_OK)
        return response_payload
    except Exception as exc:
        status = "failure"
        error_message = error_text(exc)
        raise
    finally:
        record_operation(
            db=db,
            request=request,
            context=context,
            dataroom_id=dataroom_id,
            module=_MODULE,
            business_type=OperationLogTypeEnum.DELETE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.datarooms.trash_document",
            request_body={"document_id": document_id},
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )
