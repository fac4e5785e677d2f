"""Database configuration and session management"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from fastapi import Request
from typing import AsyncGenerator
import logging

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class Database:
    """
    Data-access handle owning the async engine and its session factory.

    One instance is built per application by ``create_app`` and stored on
    ``app.state.database``; request handlers receive sessions from it via
    the ``get_db`` dependency rather than from a module-level pool.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, future=True)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        if self.engine.dialect.name == "sqlite":
            _begin_immediate_on_sqlite(self.engine)

    async def create_all(self) -> None:
        """Create all tables registered on Base.metadata"""
        # Register models on the metadata before creating tables
        import propledger.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close database connections"""
        await self.engine.dispose()


def _begin_immediate_on_sqlite(engine: AsyncEngine) -> None:
    """
    Take the SQLite write lock when each transaction begins.

    SQLite has no SELECT ... FOR UPDATE, and the driver normally defers BEGIN
    until the first write. Emitting BEGIN IMMEDIATE ourselves makes a
    check-then-insert run under the database lock, so concurrent sessions
    queue behind each other the way row locks make them queue on PostgreSQL.
    """
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except IntegrityError as e:
            logger.warning(f"Database integrity error: {e}")
            await session.rollback()
            raise
        except OperationalError as e:
            logger.error(f"Database operational error: {e}")
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}")
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
