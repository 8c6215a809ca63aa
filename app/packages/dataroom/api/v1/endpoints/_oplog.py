"""变更类接口共用的操作日志记录。"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from app.packages.dataroom.core.exceptions import AppException
from app.packages.dataroom.core.guards import TeamContext
from app.packages.dataroom.services.log_service import log_service


def error_text(exc: Exception) -> str:
    if isinstance(exc, AppException):
        return exc.msg
    return str(exc) or exc.__class__.__name__


def record_operation(
    *,
    db: Session,
    request: Request,
    context: TeamContext,
    dataroom_id: Optional[int],
    module: str,
    business_type: str,
    class_method: str,
    request_body: Optional[dict[str, Any]],
    response_body: Optional[dict[str, Any]],
    status: str,
    error_message: Optional[str],
    started_at: datetime,
) -> None:
    log_service.record_request_operation(
        db,
        request=request,
        current_user=context.user,
        module=module,
        business_type=business_type,
        class_method=class_method,
        request_body=request_body,
        response_body=response_body,
        status=status,
        error_message=error_message,
        started_at=started_at,
        team_id=context.membership.team_id,
        dataroom_id=dataroom_id,
    )
