"""PostgreSQL implementation of NotificationRepo."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from edutrack.db.session import SqlSessions
from edutrack.db.tables import AuditLogRow, NotificationRow
from edutrack.models.notification import AuditLog, Notification
from edutrack.repos.pg_table import SqlTable


class PgNotificationRepo:
    def __init__(self, sessions: SqlSessions) -> None:
        self._notifications: SqlTable[Notification] = SqlTable(
            sessions, NotificationRow, Notification
        )
        self._audit: SqlTable[AuditLog] = SqlTable(sessions, AuditLogRow, AuditLog)

    def get(self, notification_id: int) -> Notification | None:
        return self._notifications.get(notification_id)

    def list_for_user(self, user_id: int, limit: int | None = None) -> list[Notification]:
        return self._notifications.select(
            NotificationRow.user_id == user_id,
            order_by=[NotificationRow.created_at.desc(), NotificationRow.id.desc()],
            limit=limit,
        )

    def unread_count(self, user_id: int) -> int:
        return self._notifications.count(
            NotificationRow.user_id == user_id, NotificationRow.is_read.is_(False)
        )

    def exists(self, user_id: int, type: str, entity_type: str, entity_id: int) -> bool:
        return (
            self._notifications.first(
                NotificationRow.user_id == user_id,
                NotificationRow.type == type,
                NotificationRow.entity_type == entity_type,
                NotificationRow.entity_id == entity_id,
            )
            is not None
        )

    def add(self, **fields: Any) -> Notification:
        return self._notifications.insert(**fields)

    def mark_read(self, notification_id: int, at: datetime) -> Notification | None:
        return self._notifications.update(notification_id, is_read=True, read_at=at)

    def mark_all_read(self, user_id: int, at: datetime) -> int:
        return self._notifications.update_where(
            NotificationRow.user_id == user_id,
            NotificationRow.is_read.is_(False),
            is_read=True,
            read_at=at,
        )

    def delete(self, notification_id: int) -> bool:
        return self._notifications.delete(notification_id)

    def delete_for_user(self, user_id: int) -> int:
        return self._notifications.delete_where(NotificationRow.user_id == user_id)

    def add_audit(self, **fields: Any) -> AuditLog:
        return self._audit.insert(**fields)

    def list_audit(self, limit: int = 100, offset: int = 0) -> list[AuditLog]:
        return self._audit.select(
            order_by=[AuditLogRow.created_at.desc(), AuditLogRow.id.desc()],
            limit=limit,
            offset=offset,
        )
