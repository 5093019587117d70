"""Shared fixtures for docvault tests."""

from __future__ import annotations

import hashlib
import math
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from docvault.auth import Identity
from docvault.models.documents import EMBEDDING_DIMENSIONS, Document  # noqa: F401
from docvault.service import DocumentService
from docvault.store import DocumentStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine


# ---------------------------------------------------------------------------
# Fake embedding provider
# ---------------------------------------------------------------------------


class FakeEmbedding:
    """Deterministic embedding provider that records every call.

    Texts map to a hash-derived unit vector unless an explicit vector was
    registered with :meth:`set_vector`.  Setting :attr:`error` makes the
    next calls raise it.
    """

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS) -> None:
        self._dimensions = dimensions
        self._overrides: dict[str, list[float]] = {}
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        if text in self._overrides:
            return self._overrides[text]
        return self.vector_for(text)

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return "fake"

    def set_vector(self, text: str, vector: list[float]) -> None:
        self._overrides[text] = vector

    def vector_for(self, text: str) -> list[float]:
        raw: list[float] = []
        counter = 0
        while len(raw) < self._dimensions:
            digest = hashlib.sha256(f"{counter}:{text}".encode()).digest()
            raw.extend(float(b) - 127.5 for b in digest)
            counter += 1
        raw = raw[: self._dimensions]
        norm = math.sqrt(sum(x * x for x in raw))
        return [x / norm for x in raw]

    def direction(self, axis: int, *, mix: int | None = None, weight: float = 0.0) -> list[float]:
        """Unit vector along *axis*, optionally tilted towards *mix* by *weight*."""
        vec = [0.0] * self._dimensions
        vec[axis] = 1.0 - weight
        if mix is not None:
            vec[mix] = weight
        norm = math.sqrt(sum(x * x for x in vec))
        return [x / norm for x in vec]


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return an async session factory bound to the in-memory engine."""
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Async SQLModel session, closed after each test."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Workflow layer
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_embedding() -> FakeEmbedding:
    return FakeEmbedding()


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore(dialect="sqlite")


@pytest.fixture
def service(
    session_factory: async_sessionmaker[AsyncSession],
    store: DocumentStore,
    fake_embedding: FakeEmbedding,
) -> DocumentService:
    return DocumentService(
        session_factory=session_factory,
        store=store,
        embedding_provider=fake_embedding,
    )


@pytest.fixture
def alice() -> Identity:
    return Identity(id="alice", email="alice@example.com")


@pytest.fixture
def bob() -> Identity:
    return Identity(id="bob", email="bob@example.com")
