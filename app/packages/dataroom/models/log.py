"""操作日志模型：记录回收站、文件夹与文档相关接口调用的审计信息。"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.dataroom.models.base import Base, TimestampMixin


class OperationLog(TimestampMixin, Base):
    __tablename__ = "operation_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    log_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    module: Mapped[str] = mapped_column(String(100))
    business_type: Mapped[str] = mapped_column(String(32))
    operator_name: Mapped[str] = mapped_column(String(50))
    team_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    dataroom_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    operator_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    request_method: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    request_uri: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    class_method: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    request_params: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    response_params: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="success")
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cost_ms: Mapped[int] = mapped_column(Integer, default=0)
    operate_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
