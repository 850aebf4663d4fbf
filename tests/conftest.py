"""Shared test fixtures for sitedesk."""

from __future__ import annotations

import asyncio
from pathlib import Path
from types import SimpleNamespace

import pytest

from sitedesk.config import Config
from sitedesk.core.session import SessionState
from sitedesk.events.bus import EventBus
from sitedesk.seed import USERS
from sitedesk.storage.sqlite_store import SQLiteStore


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
async def store(tmp_db: Path) -> SQLiteStore:
    s = SQLiteStore(tmp_db)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(workspace_path=tmp_path)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
async def session(store, event_bus, config) -> SessionState:
    s = SessionState(store, event_bus, config)
    await s.load()
    return s


@pytest.fixture
def owner():
    return USERS[0]


class FakeModels:
    """Stands in for ``client.aio.models`` of a google-genai client."""

    def __init__(self, text: str | None = "ok", error: Exception | None = None, delay: float = 0):
        self.text = text
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeGenaiClient:
    def __init__(self, **kwargs) -> None:
        self.models = FakeModels(**kwargs)
        self.aio = SimpleNamespace(models=self.models)


@pytest.fixture
def fake_genai():
    """Factory for fake Gemini clients."""
    return FakeGenaiClient
