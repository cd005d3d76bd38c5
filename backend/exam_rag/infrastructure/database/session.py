from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

from ..config.settings import settings


class Base(DeclarativeBase, MappedAsDataclass):
    """Base class for all database models.

    Combines SQLAlchemy's DeclarativeBase with MappedAsDataclass so models get
    dataclass ``__init__``/``__repr__``/``__eq__`` generated from their
    ``Mapped`` annotations.
    """

    pass


@lru_cache()
def get_engine() -> AsyncEngine:
    """Create the application engine on first use."""
    return create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        future=True,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
    )


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the application engine."""
    return async_sessionmaker(bind=get_engine(), class_=AsyncSession, expire_on_commit=False)


async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session and close it when the caller is done.

    Example:
        ```python
        async for db in async_session():
            rows = await db.execute(select(MaterialChunk))
        ```
    """
    async with get_session_factory()() as db:
        yield db


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create all tables that don't exist yet.

    Idempotent; existing tables are left unchanged.
    """
    # Register the models on Base.metadata before create_all.
    from ...modules.material import models  # noqa: F401

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
