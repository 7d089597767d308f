"""Async database engine and session factory."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from docvault.core.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine. SQLite (tests, local dev) gets no pool sizing."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Session factory
async_session = build_session_factory(engine)


async def create_all(bind: AsyncEngine = engine) -> None:
    """Create the ``files`` and ``profiles`` tables if they don't exist."""
    from docvault.db.base import Base
    import docvault.models  # noqa: F401  register tables

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
