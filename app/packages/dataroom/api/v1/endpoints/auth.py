"""认证相关路由定义。"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.packages.dataroom.api.v1.schemas.auth import LoginRequest, LogoutResponse, TokenResponse
from app.packages.dataroom.core.dependencies import get_current_active_user, get_db, security_scheme
from app.packages.dataroom.core.security import decode_token
from app.packages.dataroom.models.user import User
from app.packages.dataroom.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """校验凭证并签发访问令牌。"""
    return auth_service.login(db, username=payload.username, password=payload.password)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    _: User = Depends(get_current_active_user),
) -> LogoutResponse:
    """退出登录：注销令牌对应的会话，之后该令牌立即失效。"""
    claims = decode_token(credentials.credentials) if credentials else None
    return auth_service.logout(claims.get("sid") if claims else None)
