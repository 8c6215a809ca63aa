"""操作日志的 CRUD 操作封装。"""

from app.packages.dataroom.crud.base import CRUDBase
from app.packages.dataroom.models.log import OperationLog


class OperationLogCRUD(CRUDBase[OperationLog]):
    pass


operation_log_crud = OperationLogCRUD(OperationLog)
