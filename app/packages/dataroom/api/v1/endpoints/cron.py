"""定时任务路由：由调度器（生产环境为 QStash）定期触发回收站清理。"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.packages.dataroom.api.v1.schemas.cron import PurgeReportResponse
from app.packages.dataroom.core.config import get_settings
from app.packages.dataroom.core.constants import (
    CRON_SIGNATURE_HEADER,
    HTTP_STATUS_INTERNAL_SERVER_ERROR,
    HTTP_STATUS_OK,
)
from app.packages.dataroom.core.dependencies import get_db
from app.packages.dataroom.core.exceptions import AppException, UnauthorizedError
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.responses import create_response
from app.packages.dataroom.core.security import verify_cron_signature
from app.packages.dataroom.services.alert_service import alert_service
from app.packages.dataroom.services.purge_service import purge_service

router = APIRouter(tags=["cron"])
logger = get_logger("cron")


async def verify_cron_request(request: Request) -> None:
    """开启签名校验时，要求 ``Upstash-Signature`` 与原始请求体匹配。"""
    if not get_settings().cron_verify_signature:
        return
    body = await request.body()
    if not verify_cron_signature(request.headers.get(CRON_SIGNATURE_HEADER), body):
        logger.warning("Rejected cron request with invalid signature from %s", request.client)
        raise UnauthorizedError("签名校验失败")


@router.post("/auto-purge-trash", response_model=PurgeReportResponse)
def auto_purge_trash(
    _: None = Depends(verify_cron_request),
    db: Session = Depends(get_db),
) -> PurgeReportResponse:
    try:
        report = purge_service.purge_expired(db)
    except Exception as exc:
        logger.exception("Auto-purge sweep failed")
        alert_service.log(f"Auto-purge sweep failed: {exc}", type="cron", mention=True)
        raise AppException("回收站自动清理失败", HTTP_STATUS_INTERNAL_SERVER_ERROR) from exc
    return create_response("回收站自动清理完成", report.as_dict(), HTTP_STATUS_OK)
