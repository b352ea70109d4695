"""Shared test fixtures."""

import re
import sqlite3

import pytest_asyncio

from design_search.db.connection import create_connection
from design_search.errors import DependencyUnavailable
from design_search.search.engine import RetrievalEngine
from design_search.search.sync import IndexSync
from design_search.search.vector import VectorIndex
from design_search.store.artifact_store import ArtifactStore


@pytest_asyncio.fixture
async def db():
    """In-memory database with full schema and sqlite-vec."""
    conn = await create_connection(":memory:")
    yield conn
    await conn.close()


class UnreachableDatabase:
    """Database whose every statement fails, as if the store went away."""

    vector_enabled = True

    def __init__(self):
        self.statements: list[str] = []

    async def execute(self, sql, params=()):
        self.statements.append(sql)
        raise sqlite3.OperationalError("unable to open database file")

    async def executescript(self, sql):
        raise sqlite3.OperationalError("unable to open database file")

    async def commit(self):
        pass

    async def close(self):
        pass


@pytest_asyncio.fixture
async def unreachable_db():
    """Database double that fails every statement."""
    return UnreachableDatabase()


@pytest_asyncio.fixture
async def store(db):
    """Artifact store backed by in-memory DB."""
    return ArtifactStore(db)


class FakeEmbedder:
    """Deterministic bag-of-words embedder for testing.

    Every distinct token gets its own dimension the first time it is seen,
    so texts sharing no words have cosine similarity exactly 0 and the
    similarity of overlapping texts can be worked out by hand. ``overrides``
    maps exact input texts to fixed vectors.
    """

    def __init__(self, dim: int = 64):
        self.dim = dim
        self.available = True
        self.overrides: dict[str, list[float]] = {}
        self.embed_calls: list[str] = []
        self._vocab: dict[str, int] = {}

    async def is_available(self) -> bool:
        return self.available

    async def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        if not self.available:
            raise DependencyUnavailable("fake embedder offline")
        if text in self.overrides:
            return self.overrides[text]

        vec = [0.0] * self.dim
        tokens = re.findall(r"[a-z0-9]+", text.lower())
        if not tokens:
            vec[-1] = 1.0
            return vec
        for token in tokens:
            slot = self._vocab.setdefault(token, len(self._vocab) % (self.dim - 1))
            vec[slot] += 1.0
        return vec

    async def close(self):
        pass


@pytest_asyncio.fixture
async def fake_embedder():
    """Fake embedding client for tests."""
    return FakeEmbedder()


@pytest_asyncio.fixture
async def index(db):
    """Vector index without a fixed dimension."""
    return VectorIndex(db)


@pytest_asyncio.fixture
async def sync(store, index, fake_embedder):
    """Index sync wired to the fake embedder."""
    index_sync = IndexSync(store, index, fake_embedder)
    yield index_sync
    await index_sync.drain()


@pytest_asyncio.fixture
async def engine(db, fake_embedder, index):
    """Retrieval engine with the default 0.5 similarity threshold."""
    return RetrievalEngine(db, fake_embedder, index, score_threshold=0.5)
