"""Pytest configuration and shared fixtures."""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rainmakers.config import Settings, get_settings
from rainmakers.database import Base, get_db
from rainmakers.models.domain import Pledge, User
from rainmakers.models.enums import AustralianState, CacheSize, CacheType, PledgeStatus
from rainmakers.services.authorization import Actor
from rainmakers.services.tokens import create_session_token

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse"

IMAGES = [
    {"url": "https://img.example.com/a.jpg", "key": "a", "width": 800, "height": 600},
    {"url": "https://img.example.com/b.jpg", "key": "b"},
]


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        auth_secret="test-secret",
        admin_emails_str=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    # StaticPool keeps one connection so the TestClient thread sees the same data
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    engine.dispose()


def make_user(db_session, email, gc_username=None):
    user = User(email=email, gc_username=gc_username)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def make_pledge(db_session, user, images=None, **overrides):
    fields = dict(
        user_id=user.id if user else None,
        gc_username=user.gc_username if user else "legacy",
        title="Creek crossing",
        cache_type=CacheType.TRADITIONAL,
        cache_size=CacheSize.SMALL,
        approx_suburb="Newtown",
        approx_state=AustralianState.NSW,
        images=images,
        status=PledgeStatus.CONCEPT,
    )
    fields.update(overrides)
    pledge = Pledge(**fields)
    db_session.add(pledge)
    db_session.commit()
    db_session.refresh(pledge)
    return pledge


@pytest.fixture
def owner(db_session):
    return make_user(db_session, "owner@example.com", "CacheOwner")


@pytest.fixture
def stranger(db_session):
    return make_user(db_session, "stranger@example.com", "SomeoneElse")


@pytest.fixture
def admin_user(db_session):
    return make_user(db_session, ADMIN_EMAIL, "EventAdmin")


@pytest.fixture
def owner_actor(owner):
    return Actor(user_id=owner.id, email=owner.email)


@pytest.fixture
def stranger_actor(stranger):
    return Actor(user_id=stranger.id, email=stranger.email)


@pytest.fixture
def admin_actor(admin_user):
    return Actor(user_id=admin_user.id, email=admin_user.email, is_admin=True)


@pytest.fixture
def sample_pledge(db_session, owner):
    """A CONCEPT pledge with two images, owned by ``owner``."""
    return make_pledge(db_session, owner, images=[dict(i) for i in IMAGES])


@pytest.fixture
def submission_data():
    return {
        "gc_code": "GC9ABCD",
        "cache_name": "Under the Bridge",
        "suburb": "Newtown",
        "state": AustralianState.NSW,
        "difficulty": 1.5,
        "terrain": 2.0,
        "type": CacheType.TRADITIONAL,
        "hidden_date": date(2026, 1, 31),
        "notes": None,
    }


@pytest.fixture
def client(db_session, settings):
    """TestClient wired to the per-test database and settings."""
    from rainmakers.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(settings):
    """Build a Bearer header for a user, as the identity provider would."""
    def _headers(user):
        return {"Authorization": f"Bearer {create_session_token(user.id, user.email, settings)}"}
    return _headers
