"""数据室模型。"""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.packages.dataroom.models.base import Base, TimestampMixin


class Dataroom(TimestampMixin, Base):
    __tablename__ = "datarooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))

    team: Mapped["Team"] = relationship("Team", back_populates="datarooms")
