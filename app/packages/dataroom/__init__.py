"""数据室业务包：文件夹/文档的回收站、恢复与定时清理。"""

from app.packages.types import AppPackage

from .api.v1 import api_router, cron_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler
from .core.logger import logger, setup_logging
from .core.responses import create_response
from .db.init_db import init_db

package = AppPackage(
    name="dataroom",
    api_router=api_router,
    cron_router=cron_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    init_db=init_db,
    create_response=create_response,
    http_exception_handler=http_exception_handler,
    generic_exception_handler=generic_exception_handler,
)

__all__ = ["package", "api_router", "cron_router", "get_settings"]
