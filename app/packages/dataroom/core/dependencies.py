"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

from collections.abc import Generator
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.dataroom.core.constants import ACCESS_TOKEN_TYPE
from app.packages.dataroom.core.exceptions import UnauthorizedError
from app.packages.dataroom.core.guards import (
    TeamContext,
    get_dataroom_for_team,
    require_destructive_role,
    require_team_member,
)
from app.packages.dataroom.core.logger import logger
from app.packages.dataroom.core.security import (
    create_access_token,
    decode_token,
    store_refreshed_token,
)
from app.packages.dataroom.core.session import touch_session
from app.packages.dataroom.crud.users import user_crud
from app.packages.dataroom.db import session as db_session
from app.packages.dataroom.models.user import User

security_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> User:
    """解析 ``Authorization`` 头部并返回当前认证用户，不存在或非法时抛出 401。"""
    store_refreshed_token(None)
    if not credentials:
        raise UnauthorizedError("缺少认证信息")

    if credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise UnauthorizedError("认证类型无效")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedError("Token 无效或已过期")

    user_id = payload.get("user_id")
    session_id = payload.get("sid")
    if user_id is None or session_id is None:
        raise UnauthorizedError("Token 无效")

    user = user_crud.get(db, user_id)
    if user is None:
        raise UnauthorizedError("用户不存在")

    if not touch_session(session_id, user.id):
        raise UnauthorizedError("Token 无效或已过期")

    # 滑动会话：为每个请求签发新令牌，响应阶段通过 meta.access_token 返回
    refreshed_token = create_access_token({"user_id": user.id, "username": user.username, "sid": session_id})
    store_refreshed_token(refreshed_token)
    logger.debug("Authenticated user %s (session %s)", user.id, session_id)
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """确保已认证用户仍处于激活状态，否则拒绝访问。"""
    if not current_user.is_active:
        raise UnauthorizedError("用户未激活")
    return current_user


def get_team_context(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> TeamContext:
    membership = require_team_member(db, team_id=team_id, user_id=current_user.id)
    return TeamContext(user=current_user, membership=membership)


def get_dataroom_context(
    dataroom_id: int,
    context: TeamContext = Depends(get_team_context),
    db: Session = Depends(get_db),
) -> TeamContext:
    dataroom = get_dataroom_for_team(db, team_id=context.team_id, dataroom_id=dataroom_id)
    return TeamContext(user=context.user, membership=context.membership, dataroom=dataroom)


def require_dataroom_manager(context: TeamContext = Depends(get_dataroom_context)) -> TeamContext:
    """破坏性操作（移入回收站、永久删除）需要 ADMIN 或 MANAGER 角色。"""
    require_destructive_role(context.membership)
    return context
