"""回收站相关的路由定义：浏览、恢复、批量恢复、移动与立即删除。"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.packages.dataroom.api.v1.endpoints._oplog import error_text, record_operation
from app.packages.dataroom.api.v1.schemas.trash import (
    BulkRestoreRequest,
    BulkRestoreResponse,
    MoveTrashItemsRequest,
    MoveTrashItemsResponse,
    PurgeItemResponse,
    RestoreResponse,
    TrashListResponse,
)
from app.packages.dataroom.core.constants import HTTP_STATUS_OK
from app.packages.dataroom.core.dependencies import get_dataroom_context, get_db, require_dataroom_manager
from app.packages.dataroom.core.enums import OperationLogTypeEnum
from app.packages.dataroom.core.guards import TeamContext
from app.packages.dataroom.core.responses import create_response
from app.packages.dataroom.core.timezone import now as tz_now
from app.packages.dataroom.services.purge_service import purge_service
from app.packages.dataroom.services.restore_service import restore_service
from app.packages.dataroom.services.trash_service import trash_service

router = APIRouter(prefix="/teams/{team_id}/datarooms/{dataroom_id}/trash", tags=["trash"])

_MODULE = "回收站"


@router.get("", response_model=TrashListResponse)
def list_trash(
    root: bool = Query(False, description="仅返回顶层条目（parent_id 为空）"),
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> TrashListResponse:
    data = trash_service.list_trash(db, dataroom_id=context.dataroom_id, root_only=root)
    return create_response("获取回收站列表成功", data, HTTP_STATUS_OK)


@router.put("/manage/{trash_id}/restore", response_model=RestoreResponse)
def restore_item(
    trash_id: int,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> RestoreResponse:
    """恢复单个条目；原位置已不存在时返回 400，``data.reason`` 为 ``restore_path_not_found``。"""
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        result = restore_service.restore(db, dataroom_id=dataroom_id, trash_id=trash_id)
        response_payload = create_response("恢复成功", result.as_dict(), HTTP_STATUS_OK)
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
            business_type=OperationLogTypeEnum.RESTORE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.trash.restore_item",
            request_body={"trash_id": trash_id},
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.post("/manage/restore", response_model=BulkRestoreResponse)
def bulk_restore(
    payload: BulkRestoreRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> BulkRestoreResponse:
    """批量恢复：逐项独立处理，响应中分别列出成功与失败的条目。"""
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        report = restore_service.bulk_restore(
            db,
            dataroom_id=dataroom_id,
            items=[(item.id, item.item_type.value if item.item_type else None) for item in payload.items],
        )
        if report.failed and not report.restored:
            msg = "恢复失败"
        elif report.failed:
            msg = "部分条目恢复失败"
        else:
            msg = "恢复成功"
        response_payload = create_response(msg, report.as_dict(), HTTP_STATUS_OK)
        if report.failed:
            status = "failure"
            error_message = "; ".join(f"{failure['trash_id']}: {failure['message']}" for failure in report.failed)
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
            business_type=OperationLogTypeEnum.RESTORE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.trash.bulk_restore",
            request_body=payload.model_dump(mode="json"),
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.post("/manage/move", response_model=MoveTrashItemsResponse)
def move_items(
    payload: MoveTrashItemsRequest,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(get_dataroom_context),
) -> MoveTrashItemsResponse:
    """把回收站条目恢复到指定文件夹（而非原位置）。"""
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        data = restore_service.move_to_folder(
            db,
            dataroom_id=dataroom_id,
            trash_ids=payload.trash_item_ids,
            target_folder_id=payload.target_folder_id,
        )
        response_payload = create_response("移动成功", data, HTTP_STATUS_OK)
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
            business_type=OperationLogTypeEnum.MOVE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.trash.move_items",
            request_body=payload.model_dump(),
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )


@router.delete("/manage/{trash_id}", response_model=PurgeItemResponse)
def purge_item(
    trash_id: int,
    request: Request,
    db: Session = Depends(get_db),
    context: TeamContext = Depends(require_dataroom_manager),
) -> PurgeItemResponse:
    """立即永久删除条目，不等待保留期到期。"""
    dataroom_id = context.dataroom_id
    started_at = tz_now()
    status = "success"
    error_message: Optional[str] = None
    response_payload: Optional[dict[str, Any]] = None

    try:
        data = purge_service.purge_item(db, dataroom_id=dataroom_id, trash_id=trash_id)
        response_payload = create_response("已永久删除", data, HTTP_STATUS_OK)
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
            business_type=OperationLogTypeEnum.PURGE.value,
            class_method="app.packages.dataroom.api.v1.endpoints.trash.purge_item",
            request_body={"trash_id": trash_id},
            response_body=response_payload,
            status=status,
            error_message=error_message,
            started_at=started_at,
        )
