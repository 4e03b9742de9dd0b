"""
Client error log.

Browsers post batches of errors; each entry is stored with a severity
derived from its message and stack unless the client supplied one.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from installmod.domain.entities import ErrorLogEntry, ErrorSeverity
from installmod.domain.errors import ValidationError
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

TABLE = "error_logs"

SEVERITY_PATTERNS: list[tuple[ErrorSeverity, tuple[str, ...]]] = [
    ("critical", ("failed to fetch", "network error", "supabase error", "authentication failed")),
    (
        "high",
        (
            "undefined is not an object",
            "null is not an object",
            "cannot read property",
            "is not a function",
            "is not defined",
            "unexpected token",
        ),
    ),
    ("medium", ("warning:", "deprecated", "timeout", "not found")),
]

SEVERITIES: tuple[ErrorSeverity, ...] = ("low", "medium", "high", "critical")


def classify_severity(message: str, stack: str | None = None) -> ErrorSeverity:
    """First matching pattern group wins; anything else is low."""
    haystack = f"{message} {stack or ''}".lower()
    for severity, patterns in SEVERITY_PATTERNS:
        if any(p in haystack for p in patterns):
            return severity
    return "low"


class ErrorLogService:
    def __init__(self, repo: ContentRepoPort) -> None:
        self._repo = repo

    def record_batch(self, errors: Sequence[Mapping[str, Any]]) -> list[ErrorLogEntry]:
        if not errors:
            raise ValidationError.single("errors_empty", "No errors provided", "errors")

        entries: list[ErrorLogEntry] = []
        for raw in errors:
            data = {k: v for k, v in raw.items() if v is not None}
            data.pop("id", None)
            if "severity" not in data:
                data["severity"] = classify_severity(str(data.get("message", "")), data.get("stack"))
            try:
                entries.append(ErrorLogEntry.model_validate(data))
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic(e) from e

        with self._repo.transaction():
            for entry in entries:
                self._repo.insert(TABLE, entry.model_dump(mode="json"))

        critical = sum(1 for e in entries if e.severity == "critical")
        if critical:
            logger.warning("Stored %d client errors (%d critical)", len(entries), critical)
        return entries

    def list(self, severity: str | None = None, limit: int | None = None) -> list[ErrorLogEntry]:
        where = {"severity": severity} if severity else None
        rows = self._repo.find(TABLE, where, order_by="timestamp", descending=True, limit=limit)
        return [ErrorLogEntry.model_validate(row) for row in rows]

    def stats(self) -> dict[str, int]:
        counts = {s: self._repo.count(TABLE, {"severity": s}) for s in SEVERITIES}
        counts["total"] = sum(counts.values())
        return counts

    def delete(self, entry_id: str) -> None:
        self._repo.delete(TABLE, entry_id)

    def clear(self) -> int:
        removed = self._repo.delete_where(TABLE, {})
        logger.info("Cleared %d error log entries", removed)
        return removed
