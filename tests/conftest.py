import time

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from config import Settings
from database import get_session
from main import create_app
from models import Task  # noqa: F401  registers the table on SQLModel.metadata

SECRET = "test-signing-secret-that-is-long-enough"
ISSUER = "task-api-tests"
AUDIENCE = "task-api-clients"

ALICE = "a@x.com"
BOB = "b@y.com"


def make_token(email=ALICE, secret=SECRET, expires_in=3600, **claims):
    """Mint an HS256 token; pass a claim as None to leave it out."""
    payload = {
        "sub": f"user-{email}",
        "email": email,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": int(time.time()) + expires_in,
    }
    payload.update(claims)
    payload = {key: value for key, value in payload.items() if value is not None}
    return jwt.encode(payload, secret, algorithm="HS256")


def auth(email=ALICE, **kwargs):
    return {"Authorization": f"Bearer {make_token(email, **kwargs)}"}


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        jwt_secret=SECRET,
        jwt_issuer=ISSUER,
        jwt_audience=AUDIENCE,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_client(settings, engine):
    """Build a TestClient, optionally with settings overrides."""
    def _make(**overrides):
        app = create_app(settings.model_copy(update=overrides))

        def override_session():
            with Session(engine) as session:
                yield session

        app.dependency_overrides[get_session] = override_session
        return TestClient(app)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()
