"""
Database engine, session factory, and metadata shared across the engine.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: Optional[str] = None, **kwargs: Any) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections are shared across threads, every other backend gets
    pre-ping so stale pooled connections are recycled.
    """
    url = database_url or settings.database_url
    options: dict[str, Any] = {"echo": settings.database_echo, "future": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
        options["pool_recycle"] = 3600
    options.update(kwargs)
    new_engine = create_engine(url, **options)

    if url.startswith("sqlite"):

        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine: Engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables on the given engine (defaults to the module engine)."""
    # Import models so Base.metadata is populated
    from .. import models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(target)
    logger.info("Availability tables ensured on %s", target.url.render_as_string(hide_password=True))
