"""Shared test helpers: in-memory SQLite store, fixed auth policy, movable clock, API client."""

import unittest
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.auth import get_token_service
from app.core.config import settings
from app.core.database import get_db
from app.core.roles import Role
from app.core.tokens import AuthPolicy, TokenService
from app.main import app
from app.models import Base, User

TEST_SECRET = "unit-test-secret-that-is-long-enough-for-hs256"

# Cheap bcrypt cost keeps the suite fast; everything else uses production defaults.
TEST_POLICY = AuthPolicy(jwt_secret=TEST_SECRET, bcrypt_rounds=4)

STRONG_PASSWORD = "Passw0rd!"
OTHER_PASSWORD = "N3wPassword"


class FakeClock:
    """Callable clock that starts at real time and only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def make_engine() -> Engine:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def make_token_service(clock: FakeClock | None = None) -> TokenService:
    if clock is None:
        return TokenService(TEST_POLICY)
    return TokenService(TEST_POLICY, clock=clock)


class ApiTestCase(unittest.TestCase):
    """Runs the FastAPI app against a private in-memory database."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.session_factory = make_session_factory(self.engine)
        self.tokens = make_token_service()

        def override_get_db() -> Iterator[Session]:
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_token_service] = lambda: self.tokens
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.engine.dispose()

    def url(self, path: str) -> str:
        return f"{settings.API_V1_PREFIX}{path}"

    def register(
        self, email: str = "a@x.com", password: str = STRONG_PASSWORD, name: str = "Alice"
    ) -> dict:
        response = self.client.post(
            self.url("/auth/register"),
            json={"email": email, "password": password, "name": name},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def login(self, email: str = "a@x.com", password: str = STRONG_PASSWORD):
        return self.client.post(
            self.url("/auth/login"), json={"email": email, "password": password}
        )

    def set_role(self, email: str, role: Role) -> None:
        with self.session_factory() as db:
            db.query(User).filter(User.email == email).update({User.role: role})
            db.commit()

    @staticmethod
    def bearer(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}
