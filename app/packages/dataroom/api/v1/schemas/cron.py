"""定时任务的响应模型。"""

from typing import Any

from pydantic import BaseModel

from app.packages.dataroom.api.v1.schemas.common import ResponseEnvelope


class PurgeReportData(BaseModel):
    purged_count: int
    total_expired: int
    skipped_count: int
    errors: list[dict[str, Any]]


PurgeReportResponse = ResponseEnvelope[PurgeReportData]
