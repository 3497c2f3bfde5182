"""Record store routing helpers.

The application talks to one relational store (SQLite by default, any
SQLAlchemy URL in production).  :class:`Store` owns the engine and hands out
short-lived sessions; services receive the store through their constructor
instead of reaching for module level globals.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from modules._infra.base import Base

# Import model modules so tables are registered on Base metadata
import modules.users.models  # noqa: F401
import modules.clients.models  # noqa: F401
import modules.contracts.models.records  # noqa: F401
import modules.finance.models  # noqa: F401

logger = logging.getLogger(__name__)

_engine_cache: Dict[str, Any] = {}


class StoreError(RuntimeError):
    """Raised when the record store rejects or cannot complete an operation."""


def get_engine(database_url: str) -> Engine:
    """Return a cached engine bound to ``database_url`` with tables created."""

    engine = _engine_cache.get(database_url)
    if engine is None:
        if database_url.startswith("sqlite:///"):
            db_path = Path(database_url[len("sqlite:///"):])
            db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(database_url)
        Base.metadata.create_all(engine)
        _engine_cache[database_url] = engine
    return engine


def dispose_engines() -> None:
    """Close every cached engine (used on shutdown and between tests)."""

    for engine in _engine_cache.values():
        engine.dispose()
    _engine_cache.clear()


class Store:
    """Thin handle on the record store used by every service."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self.engine = get_engine(database_url)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Yield a session that commits on success and rolls back on error.

        SQLAlchemy failures are re-raised as :class:`StoreError` so callers
        only need to handle one exception type for store problems.
        """

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("[store] operation failed: %s", exc)
            raise StoreError(str(exc)) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


__all__ = ["Store", "StoreError", "dispose_engines", "get_engine"]
