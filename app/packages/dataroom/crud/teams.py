"""团队与成员数据访问。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.crud.base import CRUDBase
from app.packages.dataroom.models.team import Team, TeamMember


class CRUDTeam(CRUDBase[Team]):
    pass


class CRUDTeamMember(CRUDBase[TeamMember]):
    def get_membership(self, db: Session, *, team_id: int, user_id: int) -> Optional[TeamMember]:
        return (
            self.query(db)
            .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
            .first()
        )


team_crud = CRUDTeam(Team)
team_member_crud = CRUDTeamMember(TeamMember)
