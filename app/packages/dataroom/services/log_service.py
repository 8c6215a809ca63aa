"""操作日志服务：记录回收站、文件夹、文档等变更类接口的审计信息。"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from app.packages.dataroom.core.enums import OperationLogStatusEnum
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.timezone import now as tz_now
from app.packages.dataroom.crud.logs import operation_log_crud
from app.packages.dataroom.models.log import OperationLog
from app.packages.dataroom.models.user import User

logger = get_logger("oplog")


class LogService:
    def record_operation_log(
        self,
        db: Session,
        *,
        payload: dict,
        log_number: Optional[str] = None,
    ) -> OperationLog:
        serial = log_number or self.generate_operation_number()
        return operation_log_crud.create(db, payload | {"log_number": serial})

    def record_request_operation(
        self,
        db: Session,
        *,
        request: Request,
        current_user: User,
        module: str,
        business_type: str,
        class_method: str,
        request_body: Optional[dict[str, Any]],
        response_body: Optional[dict[str, Any]],
        status: str,
        error_message: Optional[str],
        started_at: datetime,
        team_id: Optional[int] = None,
        dataroom_id: Optional[int] = None,
    ) -> None:
        """记录一次接口调用；记录失败只写警告日志，不影响请求本身。"""
        finished_at = tz_now()
        cost_ms = max(int((finished_at - started_at).total_seconds() * 1000), 0)
        allowed = {member.value for member in OperationLogStatusEnum}
        try:
            self.record_operation_log(
                db,
                payload={
                    "module": module,
                    "business_type": business_type,
                    "operator_name": current_user.username,
                    "team_id": team_id,
                    "dataroom_id": dataroom_id,
                    "operator_ip": extract_client_ip(request),
                    "request_method": request.method,
                    "request_uri": build_request_uri(request),
                    "class_method": class_method,
                    "request_params": safe_json_dump(request_body),
                    "response_params": safe_json_dump(response_body),
                    "status": status if status in allowed else OperationLogStatusEnum.FAILURE.value,
                    "error_message": error_message,
                    "cost_ms": cost_ms,
                    "operate_time": finished_at,
                },
            )
        except Exception as exc:  # pragma: no cover - 审计失败不影响业务
            db.rollback()
            logger.warning("Failed to record %s operation log: %s", module, exc)

    @staticmethod
    def generate_operation_number(timestamp: Optional[datetime] = None) -> str:
        moment = timestamp or tz_now()
        return moment.strftime("%Y%m%d%H%M%S%f")


def extract_client_ip(request: Request) -> Optional[str]:
    for header in ("x-forwarded-for", "x-real-ip", "x-client-ip"):
        value = request.headers.get(header)
        if value:
            return value.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def safe_json_dump(payload: Optional[dict[str, Any]]) -> Optional[str]:
    if payload is None:
        return None
    try:
        return json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError) as exc:
        logger.debug("Failed to serialize operation log payload: %s", exc)
        return json.dumps({"unserializable": True}, ensure_ascii=False)


def build_request_uri(request: Request) -> str:
    path = request.url.path
    query = request.url.query
    if query:
        return f"{path}?{query}"
    return path


log_service = LogService()
