"""时间工具：持久化统一使用 UTC，展示时转换为配置时区。"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from zoneinfo import ZoneInfo

from app.packages.dataroom.core.config import get_settings


def get_timezone() -> ZoneInfo:
    return get_settings().timezone_info


def now() -> datetime:
    """返回当前配置时区的时间，用于日志与耗时统计。"""
    return datetime.now(get_timezone())


def utc_now() -> datetime:
    """返回带时区的 UTC 当前时间；``removed_at``、``deleted_at``、``purge_at`` 均以此写入。"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """无时区的值按 UTC 解释（SQLite 读回的时间不带时区）。"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()
