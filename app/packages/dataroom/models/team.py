"""团队与成员模型：数据室归属于团队，成员角色决定可执行的破坏性操作。"""

from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.packages.dataroom.core.enums import TeamMemberStatusEnum, TeamRoleEnum
from app.packages.dataroom.models.base import Base, TimestampMixin


class Team(TimestampMixin, Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100))

    members: Mapped[List["TeamMember"]] = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
    )
    datarooms: Mapped[List["Dataroom"]] = relationship("Dataroom", back_populates="team")


class TeamMember(TimestampMixin, Base):
    """团队成员关系；``status`` 为 BLOCKED 的成员视同非成员。"""

    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    team_id: Mapped[int] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    role: Mapped[str] = mapped_column(String(16), default=TeamRoleEnum.MEMBER.value)
    status: Mapped[str] = mapped_column(String(16), default=TeamMemberStatusEnum.ACTIVE.value)
    blocked_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    team: Mapped[Team] = relationship("Team", back_populates="members")
    user: Mapped["User"] = relationship("User", back_populates="memberships")
