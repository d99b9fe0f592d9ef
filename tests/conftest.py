"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("CLOUDLINK_ENV", "test")
os.environ.setdefault("CLOUDLINK_LOG_LEVEL", "WARNING")
os.environ.setdefault("ACCOUNT_STORE_URL", "sqlite://")
# 32 bytes of b"0", urlsafe-base64 encoded
os.environ.setdefault("CLOUDLINK_ENCRYPTION_KEY", "MDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDA=")

from cloudlink.config import Settings
from cloudlink.database import init_db
from cloudlink.errors import IdentityNotFound
from cloudlink.modules.account.models import StoreHandle, StoreKey
from cloudlink.modules.account.store import SqlAccountStore


@pytest.fixture
def settings() -> Settings:
    """Return test settings."""
    return Settings(
        cloudlink_env="test",
        account_store_url="sqlite://",
        cloudlink_log_level="WARNING",
        _env_file=None,
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Provide a clean in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine: Engine) -> SqlAccountStore:
    """Return an account store backed by the in-memory database."""
    return SqlAccountStore(engine)


@pytest.fixture
def make_store():
    """Build a MagicMock store answering from a {handle name: {key: value}} dict."""

    def _make(records: dict[str, dict[StoreKey, str]]) -> MagicMock:
        def _get(handle: StoreHandle, key: StoreKey):
            if handle.name not in records:
                raise IdentityNotFound(handle.name)
            return records[handle.name].get(key)

        store = MagicMock()
        store.get.side_effect = _get
        return store

    return _make

