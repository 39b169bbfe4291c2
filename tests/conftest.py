"""Test fixtures: config, secret store, in-memory history DB, sample workspace.

All tests should use these fixtures for consistency.
"""

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from postline.config import PostlineConfig
from postline.db.models import Base
from postline.history import HistoryRecorder
from postline.secrets import SecretEncryption, SecretStore
from postline.types import (
    BearerAuth, Environment, KeyValue, RequestTemplate, SecretRef, Variable, Workspace,
)


@pytest.fixture
def config(tmp_path):
    """Test configuration with safe defaults."""
    return PostlineConfig(
        debug=False,
        database_url="sqlite+aiosqlite:///:memory:",
        secret_encryption_key=Fernet.generate_key().decode(),
        secrets_path=str(tmp_path / "secrets.json"),
        history_max_entries=50,
        history_retention_days=7,
    )


@pytest.fixture
def fernet_key():
    return Fernet.generate_key().decode()


@pytest.fixture
def encryption(fernet_key):
    return SecretEncryption(fernet_key)


@pytest.fixture
def secret_store(encryption):
    """In-memory store (no file backing)."""
    return SecretStore(encryption)


@pytest.fixture
async def session_factory():
    """In-memory SQLite session factory with schema created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def recorder(session_factory, config):
    return HistoryRecorder(session_factory, config)


@pytest.fixture
def workspace():
    return Workspace(
        id="ws-1",
        name="Demo",
        variables=[
            Variable(key="host", value="api.example.com"),
            Variable(key="base_url", value="https://{{host}}"),
        ],
    )


@pytest.fixture
def staging():
    return Environment(
        id="env-staging",
        name="staging",
        variables=[Variable(key="host", value="staging.example.com")],
    )


@pytest.fixture
def token_ref(secret_store):
    """A stored secret and its reference."""
    return secret_store.store("s3cr3t-token", SecretRef(secret_id="api-token"))


@pytest.fixture
def list_users():
    return RequestTemplate(
        id="req-list-users",
        name="List users",
        url="{{base_url}}/users",
        headers=[KeyValue(key="Accept", value="application/json")],
        query_params=[KeyValue(key="page", value="{{page}}")],
        auth=BearerAuth(token="{{token}}"),
        variables=[Variable(key="page", value="1")],
    )
