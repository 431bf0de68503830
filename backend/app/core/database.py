from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from sqlalchemy import select
from typing import AsyncGenerator, List, Optional, Type, TypeVar

from app.core.config import settings
from app.core.exceptions import ResourceNotFoundError

# Create base class for models (can be defined before engine)
Base = declarative_base()

ModelT = TypeVar("ModelT")

# Lazy engine initialization - create on first use to avoid import-time issues
_engine: Optional[AsyncEngine] = None
_async_session_local: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """Get properly formatted database URL"""
    db_url = settings.DATABASE_URL
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")
    return db_url


def get_engine() -> AsyncEngine:
    """
    Get or create the database engine (lazy initialization).

    Connection pooling strategy:
    - SQLite: NullPool
    - PostgreSQL Development: NullPool (simpler debugging)
    - PostgreSQL Production: QueuePool sized by DB_POOL_* settings
    """
    global _engine
    if _engine is None:
        db_url = get_database_url()

        if "sqlite" in db_url:
            _engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            )
        elif settings.is_dev_mode():
            _engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                poolclass=NullPool,
            )
        else:
            _engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,  # Verify connections before use
            )
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory (lazy initialization)"""
    global _async_session_local
    if _async_session_local is None:
        _async_session_local = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )
    return _async_session_local


# Dependency to get DB session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session - only commits if there are pending changes"""
    session_factory = get_session_local()
    async with session_factory() as session:
        try:
            yield session
            # Only commit if there are pending changes (new, dirty, or deleted objects)
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_or_404(
    db: AsyncSession,
    model: Type[ModelT],
    record_id: str,
    resource_name: Optional[str] = None,
    *options,
    for_update: bool = False,
) -> ModelT:
    """
    Fetch one row by primary key with its references expanded.

    populate_existing forces eager loaders to run even when the row is
    already in the identity map (e.g. right after an insert).
    """
    stmt = (
        select(model)
        .where(model.id == str(record_id))
        .options(*options)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    record = result.scalar_one_or_none()
    if record is None:
        raise ResourceNotFoundError(resource_name or model.__name__, str(record_id))
    return record


async def get_many(db: AsyncSession, model: Type[ModelT], record_ids, *options) -> List[ModelT]:
    """Fetch rows by primary key, returned in the order of `record_ids`"""
    ids = [str(i) for i in record_ids]
    if not ids:
        return []
    result = await db.execute(
        select(model)
        .where(model.id.in_(ids))
        .options(*options)
        .execution_options(populate_existing=True)
    )
    by_id = {str(row.id): row for row in result.scalars().all()}
    return [by_id[i] for i in ids if i in by_id]


# Database initialization
async def init_db():
    """Create all tables"""
    import app.models  # noqa: F401  register models on the metadata

    eng = get_engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connection"""
    global _engine, _async_session_local
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_local = None
