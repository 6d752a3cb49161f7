"""Pytest configuration and fixtures."""

from dataclasses import dataclass
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.client.api_client import ApiClient
from app.client.auth import AuthClient
from app.client.session import MemoryNavigator, SessionStore
from app.client.storage import LocalRecordingStore
from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.models.gift_code import GiftCode  # noqa: F401
from app.models.profile import Profile
from app.models.user import User  # noqa: F401
from app.schemas.profile import ProfileOverrides
from app.services.auth import AuthService
from app.services.profile import ProfileService


@dataclass
class MockSegment:
    """Mock transcription segment."""

    start: float
    end: float
    text: str


@dataclass
class MockTranscriptionInfo:
    """Mock transcription info."""

    language: str = "en"
    language_probability: float = 0.95
    duration: float = 30.0


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="app")
def app_fixture(db_session: Session):
    """The FastAPI app with the DB dependency overridden and rate limiting disabled."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    yield app
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app):
    """Create a synchronous test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create a test user and return its id, email, token and auth headers."""
    from app.services.jwt import get_jwt_service

    result = AuthService().register(db_session, "test@example.com", "password123")
    token = get_jwt_service().create_token(user_id=result.user_id, email=result.email)

    return {
        "user_id": result.user_id,
        "email": result.email,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture(name="set_profile")
def set_profile_fixture(db_session: Session, test_user: dict):
    """Write profile fields for the test user directly through the service."""

    def _set(**fields) -> Profile:
        return ProfileService().upsert_profile(
            db_session, test_user["user_id"], test_user["email"], ProfileOverrides(**fields)
        )

    return _set


@pytest.fixture(name="whisper")
def whisper_fixture():
    """Patch faster-whisper with a model that hears a fixed sentence."""
    with patch("app.services.transcription.TranscriptionService._get_model") as mock_get_model:
        model = MagicMock()
        model.transcribe.side_effect = lambda *args, **kwargs: (
            iter([MockSegment(0.0, 2.0, "Buy milk"), MockSegment(2.0, 4.0, "and call the plumber")]),
            MockTranscriptionInfo(),
        )
        mock_get_model.return_value = model
        yield model


@pytest.fixture(name="title_api")
def title_api_fixture():
    """Patch the Anthropic title call."""
    with patch("app.services.title.TitleService._call_api", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = '"Errands For Today"'
        yield mock_call


@pytest.fixture(name="store")
def store_fixture(tmp_path) -> LocalRecordingStore:
    return LocalRecordingStore(tmp_path / "local")


@pytest_asyncio.fixture(name="api")
async def api_fixture(app):
    """Client core HTTP wrapper talking to the in-process app."""
    api = ApiClient(base_url="http://testserver", transport=httpx.ASGITransport(app=app))
    yield api
    await api.aclose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(api: ApiClient, test_user: dict):
    """A started session store for the signed-in test user, on ``/``."""
    auth = AuthClient(api, access_token=test_user["token"])
    store = SessionStore(auth, api, MemoryNavigator("/"))
    await store.start()
    yield store
    await store.close()
