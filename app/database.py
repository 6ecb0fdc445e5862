import logging
from typing import Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


WRITE_INTENT = "sqlite_immediate"


def _configure_sqlite(engine):
    """
    Foreign keys on and WAL journaling, so readers never wait on a writer.

    Write sessions take the write lock when their transaction begins, so
    concurrent writers queue instead of deadlocking. Read sessions begin a
    plain deferred transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_INTENT):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


class Database:
    def __init__(self):
        self.engine = None
        self.async_session = None
        self.write_session = None
        self.is_connected = False
        self.url: Optional[str] = None

    async def connect(self, url: Optional[str] = None):
        """Create the engine and session factory. Safe to call more than once."""
        return self._init_engine(url)

    def _init_engine(self, url: Optional[str] = None) -> bool:
        if self.is_connected:
            return True

        connection_string = url or settings.DATABASE_URL
        try:
            self.engine = create_async_engine(
                connection_string,
                echo=settings.SQL_ECHO,
                pool_pre_ping=True,
                poolclass=NullPool
            )
            if self.engine.dialect.name == "sqlite":
                _configure_sqlite(self.engine)

            self.async_session = sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )
            # Same pool; the option only changes how SQLite begins the transaction
            self.write_session = sessionmaker(
                self.engine.execution_options(**{WRITE_INTENT: True}),
                class_=AsyncSession,
                expire_on_commit=False
            )

            self.url = connection_string
            self.is_connected = True
            logger.info(f"Connected to database: {self.engine.url.render_as_string(hide_password=True)}")
            return True

        except Exception as e:
            logger.error(f"Error connecting to database: {e}", exc_info=True)
            self.is_connected = False
            raise

    async def disconnect(self):
        """Dispose of the engine"""
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session = None
            self.write_session = None
            self.is_connected = False
            logger.info("Database connection closed")

    def get_session(self, write: bool = False) -> AsyncSession:
        """
        Get async database session, connecting on first use.

        Pass write=True for sessions that will insert, update or delete.
        """
        if not self.is_connected:
            self._init_engine()
        if write:
            return self.write_session()
        return self.async_session()

    async def create_tables(self):
        """Create all tables defined in Base metadata"""
        # Register models on the metadata before create_all.
        from app.models import attendance, session, user  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created successfully")
        except Exception as e:
            logger.error(f"Error creating tables: {e}", exc_info=True)
            raise

    async def check_connection(self) -> bool:
        if not self.is_connected:
            return False
        try:
            async with self.async_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database connectivity check failed: {e}")
            return False


# Process-wide handle, connected once at startup
database = Database()
