"""Test configuration and fixtures for the exam material retrieval core."""

import re
import zlib
from typing import List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# mypy: disable-error-code="import-untyped"
from testcontainers.core.docker_client import DockerClient
from testcontainers.postgres import PostgresContainer

from exam_rag.infrastructure.database.session import Base
from exam_rag.infrastructure.indexing.manager import IndexManager
from exam_rag.infrastructure.logging import configure_testing_logging, mark_logging_configured
from exam_rag.modules.common.exceptions import InvalidInputError
from exam_rag.modules.material import models  # noqa: F401

configure_testing_logging()
mark_logging_configured()

_WORD = re.compile(r"\w+")


class FakeEmbeddingClient:
    """Deterministic bag-of-words embedder.

    Each lowercased word is hashed into one of ``dimension`` buckets, so texts
    sharing words have a positive cosine similarity and texts with no words in
    common score 0.
    """

    def __init__(self, dimension: int = 64, fail_with: Optional[Exception] = None):
        self.dimension = dimension
        self.fail_with = fail_with
        self.calls: List[List[str]] = []

    @property
    def embedding_dimension(self) -> int:
        return self.dimension

    def vector_for(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for word in _WORD.findall(text.lower()):
            vector[zlib.crc32(word.encode()) % self.dimension] += 1.0
        return vector

    async def embed_text(self, text: str) -> List[float]:
        return (await self.embed_texts([text]))[0]

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.fail_with is not None:
            raise self.fail_with
        if any(not text.strip() for text in texts):
            raise InvalidInputError("Text cannot be empty")
        return [self.vector_for(text) for text in texts]

    @property
    def call_count(self) -> int:
        return len(self.calls)


def is_docker_running() -> bool:
    """Check if Docker daemon is running."""
    try:
        DockerClient()
        return True
    except Exception:
        return False


@pytest.fixture
def embedder() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture
def make_embedder():
    """Factory for embedders with a custom dimension or injected failure."""
    return FakeEmbeddingClient


@pytest.fixture
def memory_store() -> IndexManager:
    return IndexManager()


@pytest_asyncio.fixture(scope="function")
async def sqlite_engine(tmp_path):
    """File-backed SQLite engine with the material tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'materials.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sqlite_session_factory(sqlite_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="session")
def pg_container():
    """Create a PostgreSQL container for testing."""
    if not is_docker_running():
        pytest.skip("Docker is required, but not running")

    with PostgresContainer() as pg:
        yield pg


@pytest_asyncio.fixture(scope="function")
async def pg_engine(pg_container):
    """Create an asyncpg engine against the container with fresh tables."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    user = getattr(pg_container, "username", "test")
    password = getattr(pg_container, "password", "test")
    db = getattr(pg_container, "dbname", "test")

    engine = create_async_engine(f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()