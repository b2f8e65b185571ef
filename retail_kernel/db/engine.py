"""
Module: retail_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  A ``Database`` instance is the single
    handle on the store; it is constructed once and passed to whatever needs
    sessions (the HTTP app, scripts, tests) rather than living in module state.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, or domain/ (create_tables
    imports models/ lazily so that Base.metadata is complete).

Invariants enforced:
    - PostgreSQL sessions run at READ COMMITTED; stock items and sequence
      counters are locked with SELECT ... FOR UPDATE where a read-modify-write
      must be serialized.
    - SQLite (tests only) runs with foreign keys on, and with the driver's
      implicit transaction handling replaced by explicit BEGIN so that
      SAVEPOINTs behave.

Failure modes:
    - OperationalError when the store is unreachable.
    - Connection pool exhaustion if pool_size + max_overflow is exceeded.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from retail_kernel.config import BackofficeConfig
from retail_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _build_engine(config: BackofficeConfig) -> Engine:
    if config.is_sqlite:
        engine = create_engine(
            config.database_url,
            echo=config.echo_sql,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        _install_sqlite_listeners(engine)
        return engine

    return create_engine(
        config.database_url,
        echo=config.echo_sql,
        poolclass=QueuePool,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_pre_ping=True,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        isolation_level="READ COMMITTED",
    )


def _install_sqlite_listeners(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself; pysqlite's implicit BEGIN breaks SAVEPOINT
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """
    Engine plus session factory for one store.

    Contract:
        Every session used by services comes from ``session()`` or
        ``session_scope()`` of an explicitly passed ``Database``.

    Guarantees:
        - session_scope() commits on normal exit, rolls back on exception
          and always closes the session.
        - Sessions do not expire objects on commit, so DTOs can be built
          after the transaction ends.
    """

    def __init__(self, config: BackofficeConfig):
        self.config = config
        self.engine = _build_engine(config)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(
            "engine_initialized",
            extra={
                "dialect": self.engine.dialect.name,
                "pool_size": config.pool_size,
                "echo": config.echo_sql,
            },
        )

    def session(self) -> Session:
        """Get a new session.  The caller owns commit/rollback/close."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with database.session_scope() as session:
                session.add(entity)
                # Commits on successful exit, rolls back on exception
        """
        session = self.session()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.warning("transaction_rolled_back", exc_info=True)
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Round-trip a trivial statement.  Raises if the store is unreachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def create_tables(self) -> None:
        """
        Create all tables defined in the models.

        All ORM models are imported first so Base.metadata is complete.
        """
        from retail_kernel.db.base import Base
        import retail_kernel.models  # noqa: F401
        import retail_kernel.services.sequence_service  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        from retail_kernel.db.base import Base

        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Release all pooled connections."""
        self.engine.dispose()
