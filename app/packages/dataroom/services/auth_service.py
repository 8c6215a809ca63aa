"""认证服务：登录签发令牌、退出登录注销会话。"""

from sqlalchemy.orm import Session

from app.packages.dataroom.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_OK, HTTP_STATUS_UNAUTHORIZED
from app.packages.dataroom.core.exceptions import AppException
from app.packages.dataroom.core.logger import get_logger
from app.packages.dataroom.core.responses import create_response
from app.packages.dataroom.core.security import create_access_token, store_refreshed_token, verify_password
from app.packages.dataroom.core.session import create_session, delete_session
from app.packages.dataroom.crud.users import user_crud

logger = get_logger("auth")


class AuthService:
    def login(self, db: Session, *, username: str, password: str) -> dict:
        """校验用户凭证并签发访问令牌。"""
        user = user_crud.get_by_username(db, username)
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Login failed for %s", username)
            raise AppException(msg="用户名或密码错误", code=HTTP_STATUS_UNAUTHORIZED)
        if not user.is_active:
            raise AppException(msg="用户未激活", code=HTTP_STATUS_UNAUTHORIZED)

        session_id = create_session(user.id)
        access_token = create_access_token({"user_id": user.id, "username": user.username, "sid": session_id})
        store_refreshed_token(access_token)
        logger.info("User %s logged in", user.username)
        return create_response(
            "登录成功",
            {"access_token": access_token, "token_type": ACCESS_TOKEN_TYPE},
            HTTP_STATUS_OK,
        )

    def logout(self, session_id: str | None) -> dict:
        if session_id:
            delete_session(session_id)
        store_refreshed_token(None)
        return create_response("退出登录成功", None, HTTP_STATUS_OK)


auth_service = AuthService()
