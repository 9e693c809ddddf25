import os

# Must be in place before anything imports core.config
os.environ["ENV"] = "testing"
os.environ["PLATFORM"] = "dev"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-jwt-secret-do-not-use"
os.environ["POLKA_KEY"] = "f271c81ff7084ee5b99a5091b42d486e"
os.environ["LOG_DIR"] = ""
# Cheap argon2 parameters keep the suite fast
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["ARGON2_PARALLELISM"] = "1"

import pytest
from datetime import datetime, timedelta, timezone
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.config import settings
from core.context import AppContext
from core.database import Base, create_db_engine
from models.users import User
from utils.deps import get_db
from utils.hashing import CredentialHasher

TEST_PASSWORD = "TestPassword123!"

engine = create_db_engine(os.environ["DATABASE_URL"])

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


class FrozenClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FrozenClock:
    # Whole second so iat/exp land exactly on the instant under test
    return FrozenClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def ctx() -> AppContext:
    return AppContext.from_settings(settings)


@pytest.fixture
def hasher(ctx) -> CredentialHasher:
    return CredentialHasher.from_context(ctx)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(session, hasher) -> User:
    model = User(
        email="walt@breakingbad.com",
        hashed_password=hasher.hash(TEST_PASSWORD),
    )
    session.add(model)
    session.commit()
    session.refresh(model)
    return model


@pytest.fixture
async def client(session: Session):
    """
    HTTP client bound to the app, with get_db pointed at the test session.
    """
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
