"""测试夹具：为 pytest 提供数据库、会话存储与客户端的共享配置。"""

import os
import uuid
from datetime import datetime, timezone
from typing import Callable, Generator

TEST_DB_PATH = os.path.join(os.path.dirname(__file__), "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, update
from sqlalchemy.orm import Session, sessionmaker

from app.main import app
from app.packages.dataroom.core.constants import DEFAULT_TEAM_NAME
from app.packages.dataroom.core.dependencies import get_db
from app.packages.dataroom.core.enums import TeamMemberStatusEnum, TeamRoleEnum
from app.packages.dataroom.core.security import get_password_hash
from app.packages.dataroom.core.session import InMemorySessionBackend, set_backend
from app.packages.dataroom.db import session as db_session
from app.packages.dataroom.db.init_db import init_db
from app.packages.dataroom.models import (
    Dataroom,
    DataroomDocument,
    DataroomFolder,
    Team,
    TeamMember,
    TrashItem,
    User,
)
from app.packages.dataroom.models.base import Base
from app.packages.dataroom.services.document_service import document_service
from app.packages.dataroom.services.folder_service import folder_service


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal
    set_backend(InMemorySessionBackend())

    Base.metadata.create_all(bind=engine)
    init_db()
    yield

    set_backend(None)
    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db_session_fixture):
    """构建 FastAPI TestClient，并注入测试专用的数据库依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def default_team(db_session_fixture: Session) -> Team:
    return db_session_fixture.query(Team).filter(Team.name == DEFAULT_TEAM_NAME).one()


@pytest.fixture()
def make_dataroom(db_session_fixture: Session, default_team: Team) -> Callable[..., Dataroom]:
    """在默认团队（或指定团队）下创建一个新的数据室，保证用例之间互不干扰。"""

    def _make(team_id: int | None = None) -> Dataroom:
        dataroom = Dataroom(team_id=team_id or default_team.id, name=f"数据室-{uuid.uuid4().hex[:6]}")
        db_session_fixture.add(dataroom)
        db_session_fixture.commit()
        db_session_fixture.refresh(dataroom)
        return dataroom

    return _make


@pytest.fixture()
def make_member(db_session_fixture: Session, default_team: Team) -> Callable[..., User]:
    """创建一个用户并以指定角色/状态加入默认团队，密码统一为 ``member123``。"""

    def _make(
        role: TeamRoleEnum = TeamRoleEnum.MEMBER,
        status: TeamMemberStatusEnum = TeamMemberStatusEnum.ACTIVE,
        join: bool = True,
    ) -> User:
        user = User(
            username=f"user_{uuid.uuid4().hex[:8]}",
            hashed_password=get_password_hash("member123"),
            nickname="测试成员",
            is_active=True,
        )
        db_session_fixture.add(user)
        db_session_fixture.flush()
        if join:
            db_session_fixture.add(
                TeamMember(team_id=default_team.id, user_id=user.id, role=role.value, status=status.value)
            )
        db_session_fixture.commit()
        db_session_fixture.refresh(user)
        return user

    return _make


@pytest.fixture()
def login(client: TestClient) -> Callable[..., dict[str, str]]:
    """登录并返回可直接用于请求的 ``Authorization`` 头部。"""

    def _login(username: str = "admin", password: str = "admin123") -> dict[str, str]:
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200
        token = response.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture()
def isolate_expired_items(db_session_fixture: Session) -> None:
    """把库中已有的回收站条目推迟到遥远的将来，使清理用例只处理自己构造的到期条目。"""
    db_session_fixture.execute(
        update(TrashItem).values(purge_at=datetime(2999, 1, 1, tzinfo=timezone.utc))
    )
    db_session_fixture.commit()


@pytest.fixture()
def make_folder(db_session_fixture: Session) -> Callable[..., DataroomFolder]:
    """通过文件夹服务创建文件夹；``parent`` 为上级文件夹路径（如 ``/a``），为空表示根目录。"""

    def _make(dataroom: Dataroom, name: str, parent: str | None = None) -> DataroomFolder:
        return folder_service.create_folder(db_session_fixture, dataroom_id=dataroom.id, name=name, path=parent)

    return _make


@pytest.fixture()
def make_document(db_session_fixture: Session) -> Callable[..., DataroomDocument]:
    def _make(dataroom: Dataroom, name: str, folder: DataroomFolder | None = None) -> DataroomDocument:
        return document_service.add_document(
            db_session_fixture,
            team_id=dataroom.team_id,
            dataroom_id=dataroom.id,
            name=name,
            type="pdf",
            folder_id=folder.id if folder is not None else None,
        )

    return _make
