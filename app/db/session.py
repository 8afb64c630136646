from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the engine with every I/O path bounded by ``db_timeout_seconds``.

    SQLite waits on its busy timeout, PostgreSQL gets connect and statement
    timeouts, and the pool gives up after the same interval.
    """
    url = settings.database_url
    timeout = settings.db_timeout_seconds
    kwargs: dict[str, Any] = {"pool_pre_ping": True}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"timeout": timeout, "check_same_thread": False}
    else:
        kwargs["pool_timeout"] = timeout
        if url.startswith("postgresql"):
            kwargs["connect_args"] = {
                "connect_timeout": max(1, int(timeout)),
                "options": f"-c statement_timeout={int(timeout * 1000)}",
            }

    return create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
