import os
from datetime import datetime, timezone
from typing import AsyncGenerator

import bcrypt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Set test settings before importing the app
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["KEYVALUE_TYPE"] = "memory"
os.environ["ENABLE_METRICS"] = "false"
os.environ["MAILER_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret"

from todo_api.core.config import get_settings  # noqa: E402
from todo_api.core.security import new_link_share_token, new_user_token  # noqa: E402
from todo_api.database import create_db_and_tables, get_db  # noqa: E402
from todo_api.keyvalue.storage import close_storage, init_storage  # noqa: E402
from todo_api.models.bucket import Bucket  # noqa: E402
from todo_api.models.common import Right  # noqa: E402
from todo_api.models.link_sharing import LinkSharing, SharingType  # noqa: E402
from todo_api.models.namespace import Namespace  # noqa: E402
from todo_api.models.saved_filter import SavedFilter  # noqa: E402
from todo_api.models.sharing import (  # noqa: E402
    ListUser,
    NamespaceUser,
    TeamList,
    TeamNamespace,
)
from todo_api.models.task import Task, TaskAssignee  # noqa: E402
from todo_api.models.team import Team, TeamMember  # noqa: E402
from todo_api.models.todo_list import TodoList  # noqa: E402
from todo_api.models.user import User  # noqa: E402

# Every fixture user has the password "1234". Cheap rounds keep the suite fast.
PASSWORD = "1234"
PASSWORD_HASH = bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()

EMAIL_CONFIRM_TOKEN = "tiepiQueed8ahc7zeeFe1eveiy4Ein8osooxegiephauph2Ael"
PASSWORD_RESET_TOKEN = "passwordresettesttoken"

DUE = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def fixture_rows() -> list:
    """
    The dataset every test starts with.

    user1 owns namespace 1 (lists 1, 2 and the archived list 6) and the
    archived namespace 4 (list 5). Namespace 5 reaches user1 through team 1,
    namespace 6 through a direct share. List 3 is shared with team 1 and list 4
    with user1 directly. Namespace 3 and list 9 are private to user3.
    """
    rows = [
        User(id=1, username="user1", email="user1@example.com", password=PASSWORD_HASH),
        User(id=2, username="user2", email="user2@example.com", password=PASSWORD_HASH),
        User(id=3, username="user3", email="user3@example.com", password=PASSWORD_HASH),
        User(id=4, username="user4", email="user4@example.com", password=PASSWORD_HASH,
             password_reset_token=PASSWORD_RESET_TOKEN),
        User(id=5, username="user5", email="user5@example.com", password=PASSWORD_HASH,
             is_active=False, email_confirm_token=EMAIL_CONFIRM_TOKEN),
        User(id=6, username="user6", email="user6@example.com", password=PASSWORD_HASH),
        Team(id=1, name="testteam1", created_by_id=1),
        Team(id=2, name="testteam2", created_by_id=3),
        Namespace(id=1, title="testnamespace", owner_id=1),
        Namespace(id=2, title="testnamespace2", owner_id=2),
        Namespace(id=3, title="testnamespace3", owner_id=3),
        Namespace(id=4, title="archived namespace", owner_id=1, is_archived=True),
        Namespace(id=5, title="team shared namespace", owner_id=3),
        Namespace(id=6, title="user shared namespace", owner_id=3),
        TodoList(id=1, title="Test1", identifier="test1", namespace_id=1, owner_id=1),
        TodoList(id=2, title="Test2", namespace_id=1, owner_id=1, is_favorite=True),
        TodoList(id=3, title="Test3", namespace_id=2, owner_id=2),
        TodoList(id=4, title="Test4", namespace_id=3, owner_id=3),
        TodoList(id=5, title="Test5", namespace_id=4, owner_id=1),
        TodoList(id=6, title="Archived list", namespace_id=1, owner_id=1, is_archived=True),
        TodoList(id=7, title="Test7", namespace_id=5, owner_id=3),
        TodoList(id=8, title="Test8", namespace_id=6, owner_id=3),
        TodoList(id=9, title="Test9", namespace_id=3, owner_id=3),
    ]
    rows += [
        Bucket(id=i, title="Backlog", list_id=i, created_by_id=1) for i in range(1, 10)
    ]
    rows += [
        Bucket(id=10, title="Done", list_id=1, created_by_id=1),
        TeamMember(team_id=1, user_id=1, admin=True),
        TeamMember(team_id=1, user_id=2),
        TeamMember(team_id=1, user_id=3),
        TeamMember(team_id=2, user_id=3, admin=True),
        TeamNamespace(team_id=1, namespace_id=5, right=Right.WRITE),
        NamespaceUser(user_id=1, namespace_id=6, right=Right.ADMIN),
        TeamList(team_id=1, list_id=3, right=Right.READ),
        ListUser(user_id=1, list_id=4, right=Right.WRITE),
        Task(id=1, title="task #1", list_id=1, index=1, created_by_id=1, bucket_id=1,
             is_favorite=True, priority=1),
        Task(id=2, title="task #2 done", list_id=1, index=2, created_by_id=1,
             bucket_id=10, done=True, done_at=DUE, priority=3),
        Task(id=3, title="task #3 high prio", list_id=1, index=3, created_by_id=1,
             bucket_id=1, priority=5, due_date=DUE),
        Task(id=4, title="task #4 in list 3", list_id=3, index=1, created_by_id=2,
             bucket_id=3),
        Task(id=5, title="task #5 private", list_id=9, index=1, created_by_id=3,
             bucket_id=9),
        Task(id=6, title="task #6 archived", list_id=6, index=1, created_by_id=1,
             bucket_id=6),
        Task(id=7, title="task #7 shared directly", list_id=4, index=1,
             created_by_id=3, bucket_id=4),
        TaskAssignee(task_id=1, user_id=1),
        SavedFilter(id=1, title="testfilter1", owner_id=1,
                    filters={"filter_by": ["done"], "filter_value": ["false"]}),
        LinkSharing(id=1, hash="test", list_id=1, right=Right.READ,
                    sharing_type=SharingType.WITHOUT_PASSWORD, shared_by_id=1),
        LinkSharing(id=2, hash="test2", list_id=1, right=Right.WRITE,
                    sharing_type=SharingType.WITHOUT_PASSWORD, shared_by_id=1),
        LinkSharing(id=3, hash="test3", list_id=1, right=Right.ADMIN,
                    sharing_type=SharingType.WITHOUT_PASSWORD, shared_by_id=1),
        LinkSharing(id=4, hash="testWithPassword", list_id=1, right=Right.READ,
                    sharing_type=SharingType.WITH_PASSWORD, password=PASSWORD_HASH,
                    shared_by_id=1),
    ]
    return rows


@pytest_asyncio.fixture
async def test_engine():
    """A fresh in-memory database with all tables per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_db_and_tables(bind=engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="db")
async def db_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """A session on the test database, loaded with the fixture dataset."""
    session_maker = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with session_maker() as session:
        # Parents before children so the foreign keys hold
        for row in fixture_rows():
            session.add(row)
            await session.flush()
        await session.commit()
        yield session


@pytest.fixture(autouse=True)
def settings():
    """Settings of the test run, restored after each test."""
    settings = get_settings()
    original = settings.model_dump()
    yield settings
    for key, value in original.items():
        setattr(settings, key, value)


@pytest_asyncio.fixture(autouse=True)
async def store():
    store = init_storage()
    yield store
    await close_storage()


@pytest_asyncio.fixture(name="client")
async def client_fixture(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """An HTTP client talking to the app on the test session."""
    from todo_api.main import app

    async def get_db_override() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = get_db_override
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://localhost"
    ) as client:
        yield client
    app.dependency_overrides.clear()


def _user_headers(user_id: int) -> dict:
    token = new_user_token(User(id=user_id, username=f"user{user_id}"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Build the Authorization header of a fixture user by id"""
    return _user_headers


@pytest.fixture
def user1_headers():
    return _user_headers(1)


@pytest.fixture
def share_headers(db: AsyncSession):
    """Build the Authorization header of a fixture link share by id"""

    async def build(share_id: int) -> dict:
        share = await db.get(LinkSharing, share_id)
        return {"Authorization": f"Bearer {new_link_share_token(share)}"}

    return build
