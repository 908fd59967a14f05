"""
storage package — Repository layer with interchangeable backends.

Expose the interface, both implementations and the backend selector so the
API layer and tests never import concrete modules directly.
"""

from app.core.config import Settings
from app.core.database import check_connection, create_db_engine
from app.core.logging import get_logger

from .base import Storage, placeholder_company  # noqa: F401
from .memory import MemoryStorage  # noqa: F401
from .sql import SqlStorage  # noqa: F401

logger = get_logger(__name__)


def build_storage(settings: Settings) -> Storage:
    """
    Select the storage backend from configuration.

    - "memory" → MemoryStorage
    - "sql"    → SqlStorage; connection failures propagate
    - "auto"   → SqlStorage when DATABASE_URL is set and reachable, otherwise MemoryStorage
    """
    backend = settings.STORAGE_BACKEND

    if backend == "memory" or (backend == "auto" and not settings.DATABASE_URL):
        logger.info("Using in-memory storage")
        return MemoryStorage()

    if backend == "sql" and not settings.DATABASE_URL:
        raise RuntimeError("STORAGE_BACKEND=sql requires DATABASE_URL to be set")

    engine = create_db_engine(settings.DATABASE_URL)
    if backend == "sql":
        check_connection(engine)
        return _sql_storage(engine)

    try:
        check_connection(engine)
    except Exception as exc:
        logger.warning("Database unreachable (%s); falling back to in-memory storage", exc)
        engine.dispose()
        return MemoryStorage()

    return _sql_storage(engine)


def _sql_storage(engine) -> SqlStorage:
    logger.info("Using SQL storage (%s)", engine.dialect.name)
    if engine.dialect.name == "sqlite":
        # SQLite has no decimal type; Numeric columns come back via float
        logger.warning("SQLite storage is meant for tests; money values lose exact precision")
    return SqlStorage(engine)
