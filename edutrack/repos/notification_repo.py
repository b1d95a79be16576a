from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from edutrack.models.notification import AuditLog, Notification
from edutrack.repos.memory import InMemoryTable


class NotificationRepo(Protocol):
    def get(self, notification_id: int) -> Notification | None: ...
    def list_for_user(self, user_id: int, limit: int | None = None) -> list[Notification]: ...
    def unread_count(self, user_id: int) -> int: ...
    def exists(self, user_id: int, type: str, entity_type: str, entity_id: int) -> bool: ...
    def add(self, **fields: Any) -> Notification: ...
    def mark_read(self, notification_id: int, at: datetime) -> Notification | None: ...
    def mark_all_read(self, user_id: int, at: datetime) -> int: ...
    def delete(self, notification_id: int) -> bool: ...
    def delete_for_user(self, user_id: int) -> int: ...
    def add_audit(self, **fields: Any) -> AuditLog: ...
    def list_audit(self, limit: int = 100, offset: int = 0) -> list[AuditLog]: ...


class InMemoryNotificationRepo:
    """Notifications and the admin audit trail: append-mostly side-effect rows."""

    def __init__(self) -> None:
        self._notifications: InMemoryTable[Notification] = InMemoryTable(Notification)
        self._audit: InMemoryTable[AuditLog] = InMemoryTable(AuditLog)

    def get(self, notification_id: int) -> Notification | None:
        return self._notifications.get(notification_id)

    def list_for_user(self, user_id: int, limit: int | None = None) -> list[Notification]:
        rows = sorted(
            self._notifications.where(lambda n: n.user_id == user_id),
            key=lambda n: (n.created_at, n.id),
            reverse=True,
        )
        return rows if limit is None else rows[:limit]

    def unread_count(self, user_id: int) -> int:
        return len(
            self._notifications.where(lambda n: n.user_id == user_id and not n.is_read)
        )

    def exists(self, user_id: int, type: str, entity_type: str, entity_id: int) -> bool:
        return (
            self._notifications.find(
                lambda n: n.user_id == user_id
                and n.type == type
                and n.entity_type == entity_type
                and n.entity_id == entity_id
            )
            is not None
        )

    def add(self, **fields: Any) -> Notification:
        return self._notifications.insert(**fields)

    def mark_read(self, notification_id: int, at: datetime) -> Notification | None:
        return self._notifications.update(notification_id, is_read=True, read_at=at)

    def mark_all_read(self, user_id: int, at: datetime) -> int:
        unread = self._notifications.where(
            lambda n: n.user_id == user_id and not n.is_read
        )
        for row in unread:
            self._notifications.update(row.id, is_read=True, read_at=at)
        return len(unread)

    def delete(self, notification_id: int) -> bool:
        return self._notifications.delete(notification_id)

    def delete_for_user(self, user_id: int) -> int:
        return self._notifications.delete_where(lambda n: n.user_id == user_id)

    def add_audit(self, **fields: Any) -> AuditLog:
        return self._audit.insert(**fields)

    def list_audit(self, limit: int = 100, offset: int = 0) -> list[AuditLog]:
        rows = sorted(self._audit.all(), key=lambda a: (a.created_at, a.id), reverse=True)
        return rows[offset : offset + limit]
