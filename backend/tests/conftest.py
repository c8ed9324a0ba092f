"""
Shared fixtures for the FloBotz chat API tests.

Settings are read at import time, so the environment is prepared before any
``flobotz`` module is imported. Every test gets a fresh in-memory SQLite
database shared with the app through dependency overrides, and an
``AppContext`` whose provider services are fakes (the webhook notifier is the
real one over ``httpx.MockTransport``).
"""

import json
import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import flobotz.models  # noqa: F401
from flobotz.core.context import AppContext, get_app_context
from flobotz.core.monitoring import REGISTRY
from flobotz.core.security import create_access_token
from flobotz.crud import user as user_crud
from flobotz.database.connection import Base, get_db
from flobotz.main import app
from flobotz.services.webhook import WebhookNotifier

WEBHOOK_URL = "https://hooks.test/webhook/flo-chat"


class FakeAssistant:
    """Stands in for AssistantService; yields canned fragments"""

    def __init__(self, fragments=("Hel", "lo", " there"), fail_after=None, on_start=None):
        self.fragments = list(fragments)
        self.fail_after = fail_after
        self.on_start = on_start
        self.calls = []

    async def stream_reply(self, turns):
        self.calls.append(list(turns))
        if self.on_start:
            self.on_start()
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index == self.fail_after:
                raise RuntimeError("provider connection reset")
            yield fragment

    async def aclose(self):
        pass


class FakeTitles:
    def __init__(self, title="Greeting"):
        self.title = title
        self.calls = []

    async def generate(self, first_message):
        self.calls.append(first_message)
        return self.title


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def webhook_requests():
    return []


@pytest.fixture
def webhook_status():
    """Mutable holder so a test can make the webhook fail"""
    return {"status": 200, "error": None}


@pytest.fixture
def webhook(webhook_requests, webhook_status):
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(json.loads(request.content))
        if webhook_status["error"] is not None:
            raise webhook_status["error"]
        return httpx.Response(webhook_status["status"])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookNotifier(client, url=WEBHOOK_URL, enabled=True)


@pytest.fixture
def assistant():
    return FakeAssistant()


@pytest.fixture
def titles():
    return FakeTitles()


@pytest.fixture
def app_context(assistant, titles, webhook, session_factory):
    return AppContext(
        assistant=assistant,
        titles=titles,
        webhook=webhook,
        session_factory=session_factory,
    )


@pytest.fixture
def client(session_factory, app_context):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_app_context] = lambda: app_context
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return user_crud.create_user(db, email="alice@example.com", password="correct horse")


@pytest.fixture
def other_user(db):
    return user_crud.create_user(db, email="bob@example.com")


def auth_headers_for(user):
    token = create_access_token({"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


@pytest.fixture
def other_auth_headers(other_user):
    return auth_headers_for(other_user)


def read_fragments(response):
    """Decode the server-sent events of a chat stream"""
    return [
        json.loads(line[len("data: "):])
        for line in response.text.splitlines()
        if line.startswith("data: ")
    ]


def metric_value(name, **labels):
    """Current value of a sample in the app's Prometheus registry"""
    return REGISTRY.get_sample_value(name, labels) or 0.0
