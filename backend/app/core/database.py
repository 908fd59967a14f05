"""
database.py — Database Engine & Session Management

Purpose:
- Own the shared declarative `Base` every ORM model registers on.
- Build SQLAlchemy engines + session factories for the relational storage backend.
- Create the schema on startup (no Alembic; tables are created if missing).

Key Characteristics:
- Synchronous SQLAlchemy engine (fast + simple).
- `pool_pre_ping` so stale PostgreSQL connections are recycled transparently.
- SQLite URLs are accepted for tests only (single shared in-memory connection).
  SQLite has no decimal type, so Numeric values are read back through float:
  digits past float precision are lost and trailing zeros are added.

This module does NOT:
- Define ORM models (see app/models/*).
- Perform any queries or business logic (see app/services/storage/sql.py).
"""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Shared metadata for all tables."""


# -----------------------------------------------------------------------------
# Engine / Session Factory
# -----------------------------------------------------------------------------

def create_db_engine(url: str) -> Engine:
    """
    Create an engine for `url`.

    In-memory SQLite needs a StaticPool so every session sees the same database.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def check_connection(engine: Engine) -> None:
    """Run `SELECT 1`; raises the driver error when the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_schema(engine: Engine) -> None:
    """Create all tables registered on `Base` that do not exist yet."""
    # Importing the package registers every model on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
