from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

TEACHER = "teacher"
INSPECTOR = "inspector"
FOUNDER = "founder"
SG = "sg"
ADMIN = "admin"

ROLES = frozenset({TEACHER, INSPECTOR, FOUNDER, SG, ADMIN})

# Roles a visitor may pick on the public registration form.
SELF_REGISTER_ROLES = frozenset({TEACHER, INSPECTOR, SG})


@dataclass(frozen=True, slots=True)
class User:
    id: int
    username: str
    password_hash: str
    role: str  # teacher|inspector|founder|sg|admin, fixed at creation
    first_name: str
    last_name: str
    created_at: datetime
    email: str | None = None
    hourly_rate: float = 0.0
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
