"""枚举定义：约束团队角色、成员状态与回收站条目类型的可选值。"""

from enum import Enum


class TeamRoleEnum(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"


class TeamMemberStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"


class ItemTypeEnum(str, Enum):
    """回收站条目指向的实体类型。"""

    DATAROOM_FOLDER = "DATAROOM_FOLDER"
    DATAROOM_DOCUMENT = "DATAROOM_DOCUMENT"


class OperationLogTypeEnum(str, Enum):
    """操作日志的业务类型枚举。"""

    CREATE = "create"
    DELETE = "delete"
    RESTORE = "restore"
    MOVE = "move"
    PURGE = "purge"
    OTHER = "other"


class OperationLogStatusEnum(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


# 允许执行破坏性操作（移入回收站、永久删除）的团队角色
DESTRUCTIVE_ROLES = frozenset({TeamRoleEnum.ADMIN.value, TeamRoleEnum.MANAGER.value})
