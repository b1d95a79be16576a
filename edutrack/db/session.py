"""Thread-bound sessions for the SQL-backed repositories.

A unit of work opened by Store.transaction() binds one session to the
current thread; every repository call made inside it joins that session and
the whole block commits or rolls back together. A repository call made
outside any unit of work gets a short-lived session of its own that commits
when the call returns.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import delete
from sqlalchemy.orm import Session, sessionmaker

# Registers every table on Base.metadata.
import edutrack.db.tables  # noqa: F401
from edutrack.db.engine import Base

logger = logging.getLogger(__name__)


class SqlSessions:
    def __init__(self, factory: sessionmaker[Session]) -> None:
        self._factory = factory
        self._local = threading.local()

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Commit on success, roll back on any exception."""
        with self._factory() as session, session.begin():
            self._local.session = session
            try:
                yield session
            finally:
                self._local.session = None

    @contextmanager
    def use(self) -> Iterator[Session]:
        current = getattr(self._local, "session", None)
        if current is not None:
            yield current
            return
        with self._factory() as session, session.begin():
            yield session

    def truncate(self) -> None:
        """Delete every row, children first. Used by tests."""
        with self.use() as session:
            for table in reversed(Base.metadata.sorted_tables):
                session.execute(delete(table))
        logger.info("All tables truncated")
