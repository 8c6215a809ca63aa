"""带滑动过期的访问会话，存放在 Redis 中，不可用时退回进程内存。

访问令牌只携带 ``user_id`` 与会话编号 ``sid``，令牌是否仍然有效由此处判断，
因此退出登录后令牌立即失效。
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import redis

from app.packages.dataroom.core.config import get_settings
from app.packages.dataroom.core.logger import logger

SESSION_KEY_PREFIX = "dataroom:session:"


class SessionBackend:
    """会话后端接口：创建、续期与删除。"""

    def create(self, user_id: int, ttl_seconds: int) -> str:  # pragma: no cover - interface definition
        raise NotImplementedError

    def touch(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:  # pragma: no cover
        raise NotImplementedError

    def delete(self, session_id: str) -> None:  # pragma: no cover
        raise NotImplementedError


class RedisSessionBackend(SessionBackend):
    def __init__(self, url: str) -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True, socket_connect_timeout=2)
        self._client.ping()

    def create(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        self._client.set(SESSION_KEY_PREFIX + session_id, str(user_id), ex=ttl_seconds)
        return session_id

    def touch(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        key = SESSION_KEY_PREFIX + session_id
        if self._client.get(key) != str(user_id):
            return False
        self._client.expire(key, ttl_seconds)
        return True

    def delete(self, session_id: str) -> None:
        self._client.delete(SESSION_KEY_PREFIX + session_id)


class InMemorySessionBackend(SessionBackend):
    """单进程内存实现，用于测试或 Redis 不可用的本地环境。"""

    def __init__(self) -> None:
        self._store: dict[str, tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int, ttl_seconds: int) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._store[session_id] = (user_id, _expiry(ttl_seconds))
        return session_id

    def touch(self, session_id: str, user_id: int, ttl_seconds: int) -> bool:
        with self._lock:
            record = self._store.get(session_id)
            if record is None:
                return False
            stored_user_id, expires_at = record
            if stored_user_id != user_id or expires_at < datetime.now(timezone.utc):
                self._store.pop(session_id, None)
                return False
            self._store[session_id] = (stored_user_id, _expiry(ttl_seconds))
            return True

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._store.pop(session_id, None)


def _expiry(ttl_seconds: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)


_backend: Optional[SessionBackend] = None
_backend_lock = threading.Lock()


def get_backend() -> SessionBackend:
    global _backend
    with _backend_lock:
        if _backend is None:
            settings = get_settings()
            try:
                _backend = RedisSessionBackend(settings.redis_url)
                logger.info("Session store initialized with Redis at %s", settings.redis_url)
            except redis.RedisError as exc:  # pragma: no cover - fallback path
                logger.warning("Redis unavailable (%s), falling back to in-memory session store", exc)
                _backend = InMemorySessionBackend()
        return _backend


def set_backend(backend: Optional[SessionBackend]) -> None:
    """替换会话后端（测试中注入内存实现）。"""
    global _backend
    with _backend_lock:
        _backend = backend


def session_ttl_seconds() -> int:
    return max(get_settings().access_token_expire_minutes, 1) * 60


def create_session(user_id: int) -> str:
    return get_backend().create(user_id, session_ttl_seconds())


def touch_session(session_id: str, user_id: int) -> bool:
    """刷新会话 TTL，若会话不存在或用户不匹配则返回 ``False``。"""
    return get_backend().touch(session_id, user_id, session_ttl_seconds())


def delete_session(session_id: str) -> None:
    get_backend().delete(session_id)
