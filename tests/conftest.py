from datetime import UTC, datetime
from pathlib import Path

import pytest

from installmod.adapters.clock import FrozenClock
from installmod.adapters.memory_repo import InMemoryContentRepo
from installmod.app_shell.context import ServiceContext
from installmod.rules.loader import load_rules
from installmod.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent

FROZEN_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture
def rules() -> Rules:
    """The real rules.yaml from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def repo() -> InMemoryContentRepo:
    return InMemoryContentRepo()


@pytest.fixture
def ctx(repo, rules, clock) -> ServiceContext:
    """Full service graph over the in-memory repository."""
    return ServiceContext.from_repo(repo, rules, clock=clock)


@pytest.fixture
def content_service(ctx):
    return ctx.content_service


@pytest.fixture
def game_category(ctx):
    return ctx.taxonomy_service.create_category("Action", "game")


@pytest.fixture
def app_category(ctx):
    return ctx.taxonomy_service.create_category("Tools", "app")
