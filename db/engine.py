"""
db/engine.py -- Shared SQLAlchemy Core plumbing for every store.

All three stores (users, memberships, quotes) define their Table objects on the
single `metadata` below so foreign keys between them resolve and one
create_all() builds the whole schema.

Pattern: the stores own their tables and SQL; this module owns only the
engine, connection pragmas, and the error-translation boundary.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import DatabaseError

logger = logging.getLogger("quoteshare.db")

metadata = MetaData()


# ---------------------------------------------------------------------------
# Connection pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable foreign keys and WAL journal mode on every new connection.

    SQLite PRAGMAs are per-connection and not inherited from the pool, so
    they must be set on connect. foreign_keys is OFF by default in SQLite.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # Route handlers run in a thread pool; the same pooled connection
        # may be handed to different worker threads.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def new_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def db_errors(message: str) -> Iterator[None]:
    """Translate raw storage errors into DatabaseError at the repository boundary.

    The original exception is chained (raise ... from exc) and logged, but the
    client-facing message is the fixed `message` -- driver error text never
    reaches the transport layer.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("%s: %s", message, exc)
        raise DatabaseError(message) from exc
