from collections.abc import AsyncGenerator
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from appointment_scheduler.core.config import settings


def to_async_url(database_url: str) -> str:
    """Switch plain postgresql URLs to asyncpg and drop psycopg-only params (sslmode, channel_binding)."""
    parsed = urlparse(database_url)
    if parsed.scheme not in ("postgresql", "postgres", "postgresql+asyncpg"):
        return database_url
    scheme = "postgresql+asyncpg"
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


def _on_sqlite_connect(dbapi_connection, connection_record) -> None:
    # Take over BEGIN from the driver (see _on_sqlite_begin)
    dbapi_connection.isolation_level = None
    # SQLite ignores ON DELETE CASCADE unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn) -> None:
    # SQLite has no row locks: take the write lock up front so concurrent
    # transactions run one after another instead of failing to upgrade.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    url = to_async_url(database_url)
    if url.startswith("sqlite"):
        async_engine = create_async_engine(url, echo=echo)
        event.listen(async_engine.sync_engine, "connect", _on_sqlite_connect)
        event.listen(async_engine.sync_engine, "begin", _on_sqlite_begin)
        return async_engine
    connect_args = {"ssl": True} if settings.database_ssl else {}
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args=connect_args,
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.database_url, echo=settings.env == "development")
async_session_maker = build_session_maker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables (and the overlap constraint) with create_all; prefer Alembic in production."""
    import appointment_scheduler.models  # noqa: F401 - register tables

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
