"""运维告警通道：写入 ``app.alerts`` 日志，并在配置了 webhook 时推送一条文本消息。"""

from __future__ import annotations

from typing import Optional

import httpx

from app.packages.dataroom.core.config import get_settings
from app.packages.dataroom.core.logger import get_logger

alert_logger = get_logger("alerts")


class AlertService:
    """告警发送失败只记录日志，不向调用方抛出，避免影响清理等主流程。"""

    def log(self, message: str, type: str = "cron", mention: bool = False) -> None:
        level = alert_logger.error if mention else alert_logger.info
        level(message, extra={"alert_type": type, "mention": mention})

        settings = get_settings()
        if not settings.alert_webhook_url:
            return
        self._post(settings.alert_webhook_url, self._format(message, type, mention), settings.alert_timeout_seconds)

    @staticmethod
    def _format(message: str, type: str, mention: bool) -> str:
        prefix = "<!channel> " if mention else ""
        return f"{prefix}[{type}] {message}"

    def _post(self, url: str, text: str, timeout: float) -> Optional[int]:
        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(url, json={"text": text})
                response.raise_for_status()
                return response.status_code
        except httpx.HTTPError as exc:
            alert_logger.warning("Failed to deliver alert to webhook: %s", exc)
            return None


alert_service = AlertService()
