"""模型包初始化，便于统一导入 ORM 实体并触发模型注册。"""

from app.packages.dataroom.models.dataroom import Dataroom
from app.packages.dataroom.models.document import DataroomDocument, Document
from app.packages.dataroom.models.folder import DataroomFolder
from app.packages.dataroom.models.log import OperationLog
from app.packages.dataroom.models.team import Team, TeamMember
from app.packages.dataroom.models.trash_item import TrashItem
from app.packages.dataroom.models.user import User

__all__ = [
    "Dataroom",
    "DataroomDocument",
    "DataroomFolder",
    "Document",
    "OperationLog",
    "Team",
    "TeamMember",
    "TrashItem",
    "User",
]
