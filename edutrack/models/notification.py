from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class Notification:
    id: int
    user_id: int
    type: str  # progression_completed|validation|reopened|delay|sg_report_*|...
    title: str
    message: str
    created_at: datetime
    entity_type: str | None = None
    entity_id: int | None = None
    priority: str = "normal"  # low|normal|high|urgent
    is_read: bool = False
    read_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AuditLog:
    id: int
    action: str  # create_user, delete_level, ...
    created_at: datetime
    user_id: int | None = None
    entity_type: str | None = None
    entity_id: int | None = None
    details: dict[str, Any] = field(default_factory=dict)
