from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.
    Endpoints receive this instead of a raw user id.

        user_id: subject from the JWT, an existing active user
        role: the user's single role (teacher|inspector|founder|sg|admin)
        jti / expires_at: kept so logout can revoke this exact token
    """

    user_id: int
    role: str
    jti: str | None = None
    expires_at: float | None = None

    def has_role(self, role: str) -> bool:
        return self.role == role

    def has_any_role(self, roles: set[str] | frozenset[str]) -> bool:
        return self.role in roles
