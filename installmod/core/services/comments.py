"""Reader comments and their moderation queue."""

from __future__ import annotations

import logging
import re
from uuid import UUID

from installmod.domain.entities import KIND_TABLES, Comment, CommentStatus
from installmod.domain.errors import FieldError, NotFoundError, ValidationError
from installmod.ports.clock import ClockPort
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

TABLE = "comments"

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class CommentService:
    def __init__(self, repo: ContentRepoPort, clock: ClockPort) -> None:
        self._repo = repo
        self._clock = clock

    def submit(
        self,
        content_id: UUID,
        content_type: str,
        name: str,
        email: str,
        message: str,
        reply_to: UUID | None = None,
    ) -> Comment:
        """New comments wait in the pending queue."""
        errors: list[FieldError] = []
        if not name.strip():
            errors.append(FieldError("name_required", "Name is required", "name"))
        if not _EMAIL.match(email.strip()):
            errors.append(FieldError("email_invalid", "Please provide a valid email address", "email"))
        if not message.strip():
            errors.append(FieldError("message_required", "Message is required", "message"))
        if content_type not in KIND_TABLES:
            errors.append(FieldError("unknown_kind", f"Unknown content kind '{content_type}'", "content_type"))
        if errors:
            raise ValidationError(errors)

        target = self._repo.get(KIND_TABLES[content_type], str(content_id))
        if target is None or target.get("status") != "published":
            raise NotFoundError(f"No published {content_type} {content_id}")

        comment = Comment(
            content_id=content_id,
            content_type=content_type,  # type: ignore[arg-type]
            name=name.strip(),
            email=email.strip(),
            message=message.strip(),
            reply_to=reply_to,
            created_at=self._clock.now_utc(),
        )
        self._repo.insert(TABLE, comment.model_dump(mode="json"))
        return comment

    def _set_status(self, comment_id: UUID | str, status: CommentStatus) -> Comment:
        row = self._repo.update(TABLE, str(comment_id), {"status": status})
        logger.info("Comment %s %s", comment_id, status)
        return Comment.model_validate(row)

    def approve(self, comment_id: UUID | str) -> Comment:
        return self._set_status(comment_id, "approved")

    def reject(self, comment_id: UUID | str) -> Comment:
        return self._set_status(comment_id, "rejected")

    def delete(self, comment_id: UUID | str) -> None:
        self._repo.delete(TABLE, str(comment_id))

    def list(self, status: str | None = None, content_type: str | None = None) -> list[Comment]:
        where: dict[str, str] = {}
        if status:
            where["status"] = status
        if content_type:
            where["content_type"] = content_type
        rows = self._repo.find(TABLE, where or None, order_by="created_at", descending=True)
        return [Comment.model_validate(row) for row in rows]

    def list_approved_for(self, content_id: UUID | str, content_type: str) -> list[Comment]:
        rows = self._repo.find(
            TABLE,
            {"content_id": str(content_id), "content_type": content_type, "status": "approved"},
            order_by="created_at",
        )
        return [Comment.model_validate(row) for row in rows]
