"""
Error taxonomy for the publication subsystem.

- ValidationError: required input missing or malformed; raised before any
  repository call.
- InvalidTransitionError: requested status not reachable for the content kind.
- InconsistentStateError: status and scheduled_at disagree.
- SlugGenerationFailed: no unique slug within the retry budget.
- RepositoryError / NotFoundError: wrap storage failures.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


class ContentError(Exception):
    """Base class for all publication errors."""


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    code: str
    message: str
    field: str | None = None


class ValidationError(ContentError):
    """Raised when input fails validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        messages = [e.message for e in errors]
        super().__init__("; ".join(messages) or "Validation failed")

    @classmethod
    def single(cls, code: str, message: str, field: str | None = None) -> ValidationError:
        return cls([FieldError(code=code, message=message, field=field)])

    @classmethod
    def from_pydantic(cls, exc: Any) -> ValidationError:
        """Convert a pydantic ValidationError into field errors."""
        errors = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()))
            errors.append(
                FieldError(code=err.get("type", "invalid"), message=f"{loc}: {err['msg']}", field=loc)
            )
        return cls(errors)


class InvalidTransitionError(ContentError):
    """Raised when a state transition is not allowed."""

    def __init__(self, from_status: str, to_status: str, reason: str = "") -> None:
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Cannot transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InconsistentStateError(ContentError):
    """Raised when a record's status and scheduled_at disagree."""

    def __init__(self, record_id: Any, status: str, scheduled_at: datetime | None) -> None:
        self.record_id = record_id
        self.status = status
        self.scheduled_at = scheduled_at
        if status == "scheduled":
            detail = "scheduled record has no scheduled_at"
        else:
            detail = f"'{status}' record carries scheduled_at={scheduled_at.isoformat() if scheduled_at else None}"
        super().__init__(f"Record {record_id} is inconsistent: {detail}")


class SlugGenerationFailed(ContentError):
    """Raised when a unique slug cannot be produced."""

    def __init__(self, title: str, attempts: int) -> None:
        self.title = title
        self.attempts = attempts
        super().__init__(f"Could not generate a unique slug for '{title}' after {attempts} attempts")


class RepositoryError(ContentError):
    """Raised when the content repository fails."""

    def __init__(self, message: str, constraint: str | None = None) -> None:
        self.message = message
        self.constraint = constraint
        super().__init__(message)


class NotFoundError(RepositoryError):
    """Raised when a requested row does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, constraint=None)
