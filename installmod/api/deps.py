import os
from functools import lru_cache
from pathlib import Path

from fastapi import Request

from installmod.app_shell.context import ServiceContext
from installmod.rules.loader import load_rules
from installmod.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("INSTALLMOD_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "installmod.db")
        self.rules_path = Path(os.environ.get("INSTALLMOD_RULES_PATH", self.base_dir / "rules.yaml"))
        # sqlite | memory
        self.backend = os.environ.get("INSTALLMOD_BACKEND", "sqlite")
        self.run_sweeper = os.environ.get("INSTALLMOD_SWEEPER", "0") == "1"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def build_context(settings: Settings, rules: Rules) -> ServiceContext:
    if settings.backend == "memory":
        return ServiceContext.in_memory(rules)
    return ServiceContext.create(settings.db_path, rules)


# --- Services ---
def get_context(request: Request) -> ServiceContext:
    """The context built at startup and kept on app.state."""
    ctx = getattr(request.app.state, "context", None)
    if ctx is None:
        raise RuntimeError("Service context not initialised")
    return ctx
