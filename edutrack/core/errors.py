"""Domain exceptions raised by services and mapped to HTTP in main.py.

Services never import FastAPI; they raise one of these and the single
exception handler turns it into ``{"message": ...}`` with the class's
status code.
"""

from __future__ import annotations


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    status_code = 400


class PermissionDeniedError(DomainError):
    status_code = 403


class NotFoundError(DomainError):
    status_code = 404

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DomainError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    """A progression status change the lifecycle does not allow."""

    def __init__(self, progression_id: int, current: str, target: str) -> None:
        super().__init__(
            f"progression {progression_id} cannot move from {current} to {target}"
        )
        self.current = current
        self.target = target


class ReferencedEntityError(ValidationError):
    """Delete refused because other rows still point at the entity."""
