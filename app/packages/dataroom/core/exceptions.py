"""异常处理模块：定义统一的业务异常与响应格式。

业务层只抛出 ``AppException`` 及其子类，由全局处理器转换成 ``{msg, data, code}`` 结构。
子类的 ``reason`` 是稳定的机器可读标识，批量操作据此汇总逐项失败原因。
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from app.packages.dataroom.core.logger import logger
from app.packages.dataroom.core.security import consume_refreshed_token


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    reason = "error"

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data: Any = None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data

    @property
    def msg(self) -> str:
        return str(self.detail)


class UnauthorizedError(AppException):
    reason = "unauthorized"

    def __init__(self, msg: str = "未登录或无权访问该团队", data: Any = None) -> None:
        super().__init__(msg, status.HTTP_401_UNAUTHORIZED, data)


class ForbiddenError(AppException):
    reason = "forbidden"

    def __init__(self, msg: str = "当前角色无权执行该操作", data: Any = None) -> None:
        super().__init__(msg, status.HTTP_403_FORBIDDEN, data)


class NotFoundError(AppException):
    reason = "not_found"

    def __init__(self, msg: str = "资源不存在", data: Any = None) -> None:
        super().__init__(msg, status.HTTP_404_NOT_FOUND, data)


class ConflictError(AppException):
    reason = "conflict"

    def __init__(self, msg: str = "资源冲突", data: Any = None) -> None:
        super().__init__(msg, status.HTTP_409_CONFLICT, data)


class RestorePathNotFoundError(AppException):
    """原位置（父文件夹）已被删除或不存在，需先恢复上级目录。"""

    reason = "restore_path_not_found"

    def __init__(self, msg: str = "原位置已不存在，请先恢复上级文件夹", data: Optional[dict] = None) -> None:
        payload = {"reason": self.reason}
        if data:
            payload.update(data)
        super().__init__(msg, status.HTTP_400_BAD_REQUEST, payload)


def _envelope(msg: Any, data: Any, code: int) -> dict:
    payload = {"msg": msg, "data": data, "code": code}
    token = consume_refreshed_token()
    if token:
        payload["meta"] = {"access_token": token}
    return payload


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    headers = getattr(exc, "headers", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.detail, getattr(exc, "data", None), exc.status_code),
        headers=headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：记录堆栈并将未捕获异常转换为标准的 500 响应结构。"""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content=_envelope("服务器内部错误", None, code))
