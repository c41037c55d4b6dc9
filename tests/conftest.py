"""Shared fixtures: in-memory and fakeredis state, engine, API client.

Environment is set before any app import so WorkflowConfig picks it up.
"""

import os

os.environ["STATE_BACKEND"] = "memory"
os.environ["EXECUTOR_DELAY_SCALE"] = "0"
os.environ["STORE_RETRY_BACKOFF"] = "0"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_ALGORITHM", "HS256")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator

import httpx
import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from dependencies import get_db
from main import create_app
from models import Organization, User
from helpers import auth_headers, build_test_engine
from workflow.engine import WorkflowEngine
from workflow.state_manager import InMemoryStateManager, RedisStateManager


# --- Redis Test Fixtures ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """In-memory Redis implementation, no server needed."""
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


# --- State / Engine Fixtures ---


@pytest.fixture
def memory_state_manager() -> InMemoryStateManager:
    return InMemoryStateManager()


@pytest.fixture
def redis_state_manager(fake_redis: Redis) -> RedisStateManager:
    return RedisStateManager(fake_redis)


@pytest.fixture
async def engine(memory_state_manager: InMemoryStateManager) -> AsyncGenerator[WorkflowEngine]:
    workflow_engine = build_test_engine(memory_state_manager)
    yield workflow_engine
    await workflow_engine.shutdown()


# --- Database / Auth Fixtures ---


@pytest.fixture
def db_session():
    """SQLite in-memory database shared across threads."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    session = TestingSession()
    yield session
    session.close()
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def organization(db_session) -> Organization:
    org = Organization(name="Acme Marketing", domain="acme.test")
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture
def user(db_session, organization: Organization) -> User:
    member = User(email="marketer@acme.test", organization_id=organization.id)
    db_session.add(member)
    db_session.commit()
    db_session.refresh(member)
    return member


@pytest.fixture
def other_org_user(db_session) -> User:
    org = Organization(name="Globex", domain="globex.test")
    db_session.add(org)
    db_session.commit()
    outsider = User(email="someone@globex.test", organization_id=org.id)
    db_session.add(outsider)
    db_session.commit()
    db_session.refresh(outsider)
    return outsider


# --- API Fixtures ---


@pytest.fixture
def app(engine: WorkflowEngine, db_session):
    application = create_app(engine)

    def override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
async def auth_client(client: httpx.AsyncClient, user: User) -> httpx.AsyncClient:
    client.headers.update(auth_headers(user))
    return client
