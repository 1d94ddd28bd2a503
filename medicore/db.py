import logging
import os

from alembic.config import Config
from sqlalchemy import Connection, create_engine, event, make_url
from sqlalchemy.engine import Engine

from alembic import command
from medicore.settings import settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_connection: Connection | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # bill_items rows cascade with their bill; SQLite only honours that with the pragma on.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = make_url(settings.db_url)
        backend = url.get_backend_name()
        if backend == "sqlite":
            # Repository calls run in worker threads (asyncio.to_thread).
            _engine = create_engine(url, connect_args={"check_same_thread": False})
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            _engine = create_engine(url, pool_pre_ping=True, pool_recycle=1800)
        logger.info("Database engine created: backend=%s", backend)
    return _engine


def get_connection() -> Connection:
    """Return the connection shared by the terminal session."""
    global _connection
    if _connection is None:
        _connection = get_engine().connect()
        logger.debug("Session DB connection opened")
    return _connection


def close_connection() -> None:
    """Close the session connection and dispose of the engine's pool."""
    global _connection, _engine
    if _connection is not None:
        _connection.close()
        _connection = None
        logger.debug("Session DB connection closed")
    if _engine is not None:
        _engine.dispose()
        _engine = None


def _get_alembic_config() -> Config:
    """Alembic config for the bundled migrations, independent of the working directory."""
    project_root = os.path.dirname(os.path.dirname(__file__))
    ini_path = os.path.join(project_root, "alembic.ini")
    if not os.path.exists(ini_path):
        ini_path = os.path.join(os.getcwd(), "alembic.ini")
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(project_root, "alembic"))
    return cfg


def initialize_db() -> None:
    """Bring the schema (patients, bills, bill_items) up to the latest revision."""
    logger.info("Running Alembic migrations")
    command.upgrade(_get_alembic_config(), "head")
    logger.info("Migrations complete")
