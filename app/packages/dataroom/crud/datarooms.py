"""数据室数据访问。"""

from typing import Optional

from sqlalchemy.orm import Session

from app.packages.dataroom.crud.base import CRUDBase
from app.packages.dataroom.models.dataroom import Dataroom


class CRUDDataroom(CRUDBase[Dataroom]):
    def get_for_team(self, db: Session, *, team_id: int, dataroom_id: int) -> Optional[Dataroom]:
        return (
            self.query(db)
            .filter(Dataroom.id == dataroom_id, Dataroom.team_id == team_id)
            .first()
        )


dataroom_crud = CRUDDataroom(Dataroom)
