from typing import Generator
import logging

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

logger = logging.getLogger(__name__)


# ============================================================
# ✅ Engine construction (one per process, owned by the app)
# ============================================================
def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the SQLModel engine for the given URL.
    PostgreSQL gets pool_pre_ping to avoid stale connections.

    SQLite transactions start with BEGIN IMMEDIATE, so the write lock is
    held from the first statement and SELECT ... FOR UPDATE sections
    (which SQLite ignores) still serialize.
    """
    if database_url.startswith("sqlite"):
        logger.warning("⚠️ Using SQLite database: %s", database_url)
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            # pysqlite would otherwise defer BEGIN until the first write
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    logger.info("✅ Using database from environment")
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


# ============================================================
# ✅ Create tables (called at startup)
# ============================================================
def create_db_and_tables(engine: Engine) -> None:
    # Registers every table on SQLModel.metadata
    import models.models  # noqa: F401

    try:
        SQLModel.metadata.create_all(engine)
        logger.info("✅ All database tables created successfully.")
    except Exception as e:
        logger.error("❌ Failed to create tables: %s", e)
        raise


# ============================================================
# ✅ Dependency: FastAPI session generator
# ============================================================
def get_session(request: Request) -> Generator[Session, None, None]:
    """
    Provides a Session bound to the engine the app was built with.
    Closes automatically after the request completes.
    """
    with Session(request.app.state.engine) as session:
        yield session
