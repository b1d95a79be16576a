"""Unit of work over the repos.

Every mutating request runs inside ``store.transaction()`` so a multi-step
write (user + assignments + audit row) applies completely or not at all.

With DATABASE_URL configured the repos are SQL-backed and the transaction
is one database session that commits on success and rolls back on error.
Without it the repos live in memory: the transaction holds a re-entrant
lock, snapshots every repo on entry and restores the snapshot if the block
raises.

Nested transactions join the outermost one; only the outermost block
commits, or snapshots and restores.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from edutrack.db.engine import session_factory
from edutrack.db.session import SqlSessions
from edutrack.repos.assignment_repo import InMemoryAssignmentRepo
from edutrack.repos.curriculum_repo import InMemoryCurriculumRepo
from edutrack.repos.notification_repo import InMemoryNotificationRepo
from edutrack.repos.pg_assignment_repo import PgAssignmentRepo
from edutrack.repos.pg_curriculum_repo import PgCurriculumRepo
from edutrack.repos.pg_notification_repo import PgNotificationRepo
from edutrack.repos.pg_progression_repo import PgProgressionRepo
from edutrack.repos.pg_report_repo import PgReportRepo
from edutrack.repos.pg_user_repo import PgUserRepo
from edutrack.repos.progression_repo import InMemoryProgressionRepo
from edutrack.repos.report_repo import InMemoryReportRepo
from edutrack.repos.user_repo import InMemoryUserRepo

logger = logging.getLogger(__name__)

_REPO_ATTRS = (
    "users",
    "curriculum",
    "assignments",
    "progressions",
    "reports",
    "notifications",
)


class Store:
    def __init__(self, sessions: SqlSessions | None = None) -> None:
        self._sessions = sessions
        self._lock = threading.RLock()
        self._depth = threading.local()
        self._build_repos()

    @property
    def is_sql(self) -> bool:
        return self._sessions is not None

    def _build_repos(self) -> None:
        if self._sessions is not None:
            self.users = PgUserRepo(self._sessions)
            self.curriculum = PgCurriculumRepo(self._sessions)
            self.assignments = PgAssignmentRepo(self._sessions)
            self.progressions = PgProgressionRepo(self._sessions)
            self.reports = PgReportRepo(self._sessions)
            self.notifications = PgNotificationRepo(self._sessions)
            return
        self.users = InMemoryUserRepo()
        self.curriculum = InMemoryCurriculumRepo()
        self.assignments = InMemoryAssignmentRepo()
        self.progressions = InMemoryProgressionRepo()
        self.reports = InMemoryReportRepo()
        self.notifications = InMemoryNotificationRepo()

    @contextmanager
    def transaction(self) -> Iterator[Store]:
        depth = getattr(self._depth, "value", 0)
        if depth:
            self._depth.value = depth + 1
            try:
                yield self
            finally:
                self._depth.value = depth
            return

        self._depth.value = 1
        try:
            if self._sessions is not None:
                with self._sql_transaction():
                    yield self
            else:
                with self._memory_transaction():
                    yield self
        finally:
            self._depth.value = 0

    @contextmanager
    def _sql_transaction(self) -> Iterator[None]:
        try:
            with self._sessions.unit_of_work():  # type: ignore[union-attr]
                yield
        except BaseException:
            logger.info("Transaction rolled back")
            raise

    @contextmanager
    def _memory_transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = {
                name: copy.deepcopy(vars(getattr(self, name))) for name in _REPO_ATTRS
            }
            try:
                yield
            except BaseException:
                for name, state in snapshot.items():
                    repo = getattr(self, name)
                    vars(repo).clear()
                    vars(repo).update(state)
                logger.info("Transaction rolled back")
                raise

    def reset(self) -> None:
        """Drop every row. Used by tests."""
        if self._sessions is not None:
            self._sessions.truncate()
            return
        with self._lock:
            self._build_repos()


# Module-level singleton shared by every router; SQL-backed when
# DATABASE_URL is configured.
store = Store(SqlSessions(session_factory) if session_factory is not None else None)
