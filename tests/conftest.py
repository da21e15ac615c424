"""Pytest configuration and fixtures."""

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings
from app.database import Base, get_db
from app.models.user import User, UserPreferences  # noqa: F401
from app.models.voice_event import VoiceEvent  # noqa: F401
from app.rate_limit import UserRateLimiter, get_user_rate_limiter
from app.services.fetcher import AudioFetcher, get_audio_fetcher
from app.services.llm import EnhancementClient, get_enhancement_client
from app.services.mailer import get_mailer
from app.services.scheduler import get_enhancement_scheduler
from app.services.transcription import TranscriptionService, get_transcription_service
from app.services.user import UserService
from tests.fakes import AudioServer, FakeChat, FakeScheduler, FakeWhisper, RecordingMailer, make_settings


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="settings")
def settings_fixture() -> Settings:
    return make_settings()


@pytest.fixture(name="mailer")
def mailer_fixture() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(name="whisper")
def whisper_fixture() -> FakeWhisper:
    return FakeWhisper(text="  hello there.this is   a test  ")


@pytest.fixture(name="chat")
def chat_fixture() -> FakeChat:
    return FakeChat()


@pytest.fixture(name="scheduler")
def scheduler_fixture() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture(name="audio_server")
def audio_server_fixture() -> AudioServer:
    return AudioServer()


@pytest.fixture(name="client")
def client_fixture(
    db_session: Session,
    settings: Settings,
    mailer: RecordingMailer,
    whisper: FakeWhisper,
    chat: FakeChat,
    scheduler: FakeScheduler,
    audio_server: AudioServer,
):
    """Create a test client with overridden dependencies and disabled IP rate limiting."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    fetcher = AudioFetcher(settings, transport=httpx.MockTransport(audio_server))
    transcriber = TranscriptionService(settings, client=whisper)
    llm = EnhancementClient(settings, client=chat)
    user_limiter = UserRateLimiter("5/minute")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_audio_fetcher] = lambda: fetcher
    app.dependency_overrides[get_transcription_service] = lambda: transcriber
    app.dependency_overrides[get_enhancement_client] = lambda: llm
    app.dependency_overrides[get_enhancement_scheduler] = lambda: scheduler
    app.dependency_overrides[get_user_rate_limiter] = lambda: user_limiter
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session) -> User:
    """Approved user with slug abc123 and an API key."""
    return UserService().create_user(db_session, "ana@example.com", approved=True, slug="abc123")


@pytest.fixture(name="pending_user")
def pending_user_fixture(db_session: Session) -> User:
    """Known user awaiting approval."""
    return UserService().create_user(db_session, "sam@example.com", approved=False, slug="zzz999")


@pytest.fixture(name="api_headers")
def api_headers_fixture(test_user: User) -> dict:
    return {"Authorization": f"Bearer {test_user.api_key}"}
