"""Task-gated download popup: one site-wide configuration row."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from installmod.domain.entities import TASK_POPUP_ID, TaskPopupConfig
from installmod.domain.errors import FieldError, ValidationError
from installmod.ports.clock import ClockPort
from installmod.ports.repo import ContentRepoPort

logger = logging.getLogger(__name__)

TABLE = "task_popup_config"


class TaskPopupService:
    def __init__(self, repo: ContentRepoPort, clock: ClockPort) -> None:
        self._repo = repo
        self._clock = clock

    def get_config(self) -> TaskPopupConfig:
        """The stored configuration, or a disabled default when none was saved."""
        row = self._repo.get(TABLE, TASK_POPUP_ID)
        if row is None:
            return TaskPopupConfig(updated_at=self._clock.now_utc())
        return TaskPopupConfig.model_validate(row)

    def save_config(self, data: dict[str, Any]) -> TaskPopupConfig:
        payload = {k: v for k, v in data.items() if k not in ("id", "updated_at")}
        payload.update(id=TASK_POPUP_ID, updated_at=self._clock.now_utc())
        try:
            config = TaskPopupConfig.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        self._check(config)

        row = config.model_dump(mode="json")
        with self._repo.transaction():
            if self._repo.get(TABLE, TASK_POPUP_ID) is None:
                self._repo.insert(TABLE, row)
            else:
                row.pop("id")
                self._repo.update(TABLE, TASK_POPUP_ID, row)
        logger.info(
            "Task popup %s with %d buttons",
            "enabled" if config.enabled else "disabled",
            len(config.buttons),
        )
        return config

    def popup_for(self, app_id: UUID | str) -> TaskPopupConfig | None:
        """Configuration to show before downloading the app, or None to download directly."""
        config = self.get_config()
        if not config.enabled or not config.buttons:
            return None
        if config.target_apps is not None and UUID(str(app_id)) not in config.target_apps:
            return None
        return config

    def _check(self, config: TaskPopupConfig) -> None:
        errors: list[FieldError] = []
        seen: set[str] = set()
        for button in config.buttons:
            if button.id in seen:
                errors.append(
                    FieldError("button_duplicate", f"Duplicate button id '{button.id}'", "buttons")
                )
            seen.add(button.id)
            parts = urlsplit(button.url)
            if not parts.netloc or parts.scheme.lower() not in ("http", "https"):
                errors.append(
                    FieldError("button_url_invalid", f"Button '{button.label}' needs a full URL", "buttons")
                )
        for app_id in config.target_apps or []:
            if self._repo.get("apps", str(app_id)) is None:
                errors.append(FieldError("target_app_missing", f"No app {app_id}", "target_apps"))
        if errors:
            raise ValidationError(errors)
