"""数据室服务。"""

from typing import Any

from sqlalchemy.orm import Session

from app.packages.dataroom.crud.datarooms import dataroom_crud
from app.packages.dataroom.models.dataroom import Dataroom


class DataroomService:
    def create_dataroom(self, db: Session, *, team_id: int, name: str) -> Dataroom:
        return dataroom_crud.create(db, {"team_id": team_id, "name": name.strip()})


def serialize_dataroom(dataroom: Dataroom) -> dict[str, Any]:
    return {"id": dataroom.id, "team_id": dataroom.team_id, "name": dataroom.name}


dataroom_service = DataroomService()
