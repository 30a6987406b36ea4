"""Pytest configuration and fixtures"""
import os

# Settings are read at import time; keep the suite off the shared limiter and local DB
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Callable, Dict, Generator, Optional  # noqa: E402

import pytest  # noqa: E402
from argon2 import PasswordHasher  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from soulsync.api.deps import get_clock, get_password_verifier  # noqa: E402
from soulsync.database import Base, get_db  # noqa: E402
from soulsync.main import app  # noqa: E402
from soulsync.models.identity import TIER_FREE, Identity  # noqa: E402
from soulsync.services.questions import QuestionBank  # noqa: E402
from soulsync.services.token_service import TokenService  # noqa: E402
from soulsync.utils.auth import Argon2PasswordVerifier, generate_identity_id  # noqa: E402
from soulsync.utils.clock import FixedClock, to_naive_utc  # noqa: E402

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Tuesday 10 March 2026, 09:00 UTC
START = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)

TEST_PASSWORD = "correct-horse"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture(scope="session")
def passwords() -> Argon2PasswordVerifier:
    """Cheap argon2 parameters; production cost is irrelevant to behaviour"""
    return Argon2PasswordVerifier(PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1))


@pytest.fixture(scope="function")
def client(db: Session, clock: FixedClock, passwords) -> Generator[TestClient, None, None]:
    """Create test client with database, clock and hasher overrides"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_password_verifier] = lambda: passwords
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def questions(db: Session):
    """Seeded question bank, keyed by question_id"""
    bank = QuestionBank(db)
    bank.seed()
    return bank.by_id()


@pytest.fixture
def make_identity(db: Session, clock: FixedClock, passwords) -> Callable[..., Identity]:
    """Factory for identities inserted straight into the database"""
    counter = {"n": 0}

    def _make(
        name: Optional[str] = None,
        tier: str = TIER_FREE,
        verified: bool = True,
        active: bool = True,
        answers: Optional[Dict] = None,
        identity_id: Optional[str] = None,
        minutes_ago: int = 0,
    ) -> Identity:
        counter["n"] += 1
        name = name or f"member{counter['n']}"
        identity = Identity(
            identity_id=identity_id or generate_identity_id(),
            email=f"{name.lower()}@example.com",
            credential_hash=passwords.hash(TEST_PASSWORD),
            name=name,
            interests=[],
            tier=tier,
            is_active=active,
            is_verified=verified,
            created_at=to_naive_utc(clock.now()),
            last_active_at=to_naive_utc(clock.now() - timedelta(minutes=minutes_ago)),
        )
        db.add(identity)
        db.commit()
        if answers:
            QuestionBank(db).submit_answers(identity.identity_id, answers)
        return identity

    return _make


@pytest.fixture
def bearer(db: Session, clock: FixedClock) -> Callable[[Identity], Dict[str, str]]:
    """Authorization header with a fresh access token for an identity"""

    def _headers(identity: Identity) -> Dict[str, str]:
        pair = TokenService(db, clock).issue(identity.identity_id)
        return {"Authorization": f"Bearer {pair.access_token}"}

    return _headers


@pytest.fixture
def session_factory():
    """Independent sessions for tests that race several workers against one database"""
    return TestingSessionLocal
