"""Database bootstrapping utilities."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.packages.dataroom.core.constants import (
    DEFAULT_ADMIN_NICKNAME,
    DEFAULT_ADMIN_PASSWORD,
    DEFAULT_ADMIN_USERNAME,
    DEFAULT_TEAM_NAME,
)
from app.packages.dataroom.core.enums import TeamMemberStatusEnum, TeamRoleEnum
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.security import get_password_hash
from app.packages.dataroom.db import session as db_session
from app.packages.dataroom.models import Team, TeamMember, User
from app.packages.dataroom.models.base import Base

logger = get_logger("init_db")


def init_db() -> None:
    """Create all database tables if they do not exist and seed baseline data."""
    Base.metadata.create_all(bind=db_session.engine)

    session = db_session.SessionLocal()
    try:
        _seed_core_entities(session)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_core_entities(db: Session) -> None:
    """Ensure the administrator and a default team (administrator as ADMIN) exist."""
    admin_user = db.query(User).filter(User.username == DEFAULT_ADMIN_USERNAME).first()
    if admin_user is None:
        admin_user = User(
            username=DEFAULT_ADMIN_USERNAME,
            hashed_password=get_password_hash(DEFAULT_ADMIN_PASSWORD),
            nickname=DEFAULT_ADMIN_NICKNAME,
            is_active=True,
        )
        db.add(admin_user)
        db.flush()
    else:
        if not admin_user.nickname:
            admin_user.nickname = DEFAULT_ADMIN_NICKNAME
        admin_user.is_active = True
        db.add(admin_user)

    team = db.query(Team).filter(Team.name == DEFAULT_TEAM_NAME).first()
    if team is None:
        team = Team(name=DEFAULT_TEAM_NAME)
        db.add(team)
        db.flush()

    membership = (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team.id, TeamMember.user_id == admin_user.id)
        .first()
    )
    if membership is None:
        db.add(
            TeamMember(
                team_id=team.id,
                user_id=admin_user.id,
                role=TeamRoleEnum.ADMIN.value,
                status=TeamMemberStatusEnum.ACTIVE.value,
            )
        )
    else:
        membership.role = TeamRoleEnum.ADMIN.value
        membership.status = TeamMemberStatusEnum.ACTIVE.value
        db.add(membership)
    db.flush()
