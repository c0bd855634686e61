import logging
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from logos.config import settings
from logos.errors import ConflictError, StoreError
from logos.middleware import install_query_counter

logger = logging.getLogger(__name__)


def configure_sqlite(engine: AsyncEngine) -> None:
    """
    Make an aiosqlite engine behave like the production store.

    - ``PRAGMA foreign_keys=ON`` so the ON DELETE CASCADE rules on comments
      and post_tags are enforced.
    - The driver's own transaction handling is disabled and BEGIN is emitted
      explicitly, otherwise SAVEPOINTs (``AsyncSession.begin_nested``) used
      by the post write path do not nest correctly under pysqlite.
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def atomic(db: AsyncSession, conflict_detail: str = "Conflicts with existing data"):
    """
    Run a block of writes as one unit inside the request transaction.

    The block executes under a SAVEPOINT: if anything inside raises, every
    statement of the block is rolled back and no partial rows stay visible
    in the session.  Unique-constraint violations surface as
    ``ConflictError`` and other database failures as ``StoreError``; domain
    errors raised inside the block propagate unchanged.
    """
    try:
        async with db.begin_nested():
            yield
    except IntegrityError as exc:
        logger.warning("Write rejected by constraint: %s", exc.orig)
        raise ConflictError(conflict_detail) from exc
    except SQLAlchemyError as exc:
        logger.exception("Database failure during write")
        raise StoreError("Database operation failed") from exc


async def get_db():
    """
    Request-scoped session.  The request commits when the handler returns
    and rolls back on any exception; services only flush.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
