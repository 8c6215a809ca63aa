"""团队访问控制：成员校验、破坏性操作的角色校验、数据室归属校验。

- 非团队成员或成员状态不是 ACTIVE：401；
- 数据室不属于该团队：404；
- 移入回收站、永久删除需要 ADMIN 或 MANAGER：403。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.core.enums import DESTRUCTIVE_ROLES, TeamMemberStatusEnum
from app.packages.dataroom.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from app.packages.dataroom.crud.datarooms import dataroom_crud
from app.packages.dataroom.crud.teams import team_member_crud
from app.packages.dataroom.models.dataroom import Dataroom
from app.packages.dataroom.models.team import TeamMember
from app.packages.dataroom.models.user import User


@dataclass(frozen=True)
class TeamContext:
    user: User
    membership: TeamMember
    dataroom: Optional[Dataroom] = None

    @property
    def team_id(self) -> int:
        return self.membership.team_id

    @property
    def dataroom_id(self) -> int:
        if self.dataroom is None:
            raise RuntimeError("TeamContext was resolved without a dataroom")
        return self.dataroom.id

    @property
    def role(self) -> str:
        return self.membership.role


def require_team_member(db: Session, *, team_id: int, user_id: int) -> TeamMember:
    membership = team_member_crud.get_membership(db, team_id=team_id, user_id=user_id)
    if membership is None or membership.status != TeamMemberStatusEnum.ACTIVE.value:
        raise UnauthorizedError()
    return membership


def get_dataroom_for_team(db: Session, *, team_id: int, dataroom_id: int) -> Dataroom:
    dataroom = dataroom_crud.get_for_team(db, team_id=team_id, dataroom_id=dataroom_id)
    if dataroom is None:
        raise NotFoundError("数据室不存在")
    return dataroom


def require_destructive_role(membership: TeamMember) -> None:
    if membership.role not in DESTRUCTIVE_ROLES:
        raise ForbiddenError("仅团队管理员或经理可以执行删除操作")
