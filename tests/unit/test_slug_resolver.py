from itertools import cycle
from uuid import uuid4

import pytest

from installmod.adapters.memory_repo import InMemoryContentRepo
from installmod.core.services.slugs import SlugResolver
from installmod.domain.errors import SlugGenerationFailed, ValidationError


def tokens(*values):
    it = iter(values)
    return lambda length: next(it)


@pytest.fixture
def repo():
    repo = InMemoryContentRepo()
    repo.insert("games", {"id": "g-1", "title": "My App", "slug": "my-app"})
    return repo


def test_free_slug_returned_as_is(repo):
    resolver = SlugResolver(repo)
    assert resolver.resolve_unique_slug("Brand New", "games") == "brand-new"


def test_collision_gets_disambiguated(repo):
    resolver = SlugResolver(repo, token_factory=tokens("a1b2c3d4"))
    slug = resolver.resolve_unique_slug("My App", "games")
    assert slug == "my-app-a1b2c3d4"
    assert slug != "my-app"


def test_collision_with_real_tokens_differs(repo):
    slug = SlugResolver(repo).resolve_unique_slug("My App", "games")
    assert slug != "my-app"
    assert slug.startswith("my-app-")
    assert len(slug) == len("my-app-") + 8


def test_excluded_record_does_not_collide(repo):
    resolver = SlugResolver(repo)
    assert resolver.resolve_unique_slug("My App", "games", exclude_id="g-1") == "my-app"


def test_other_tables_do_not_collide(repo):
    assert SlugResolver(repo).resolve_unique_slug("My App", "apps") == "my-app"


def test_retries_until_unique(repo):
    repo.insert("games", {"id": "g-2", "title": "My App", "slug": "my-app-aaaa0000"})
    resolver = SlugResolver(repo, token_factory=tokens("aaaa0000", "bbbb1111"))
    assert resolver.resolve_unique_slug("My App", "games") == "my-app-bbbb1111"


def test_gives_up_after_max_attempts(repo):
    repo.insert("games", {"id": "g-2", "title": "My App", "slug": "my-app-stuck"})
    calls = []

    def stuck(length):
        calls.append(length)
        return "stuck"

    resolver = SlugResolver(repo, max_attempts=3, token_factory=stuck)
    with pytest.raises(SlugGenerationFailed) as exc:
        resolver.resolve_unique_slug("My App", "games")

    assert exc.value.attempts == 3
    assert len(calls) == 3


def test_empty_title_is_validation_error(repo):
    with pytest.raises(ValidationError) as exc:
        SlugResolver(repo).resolve_unique_slug("?!", "games")
    assert exc.value.errors[0].code == "slug_empty"


def test_disambiguator_length_is_passed_through():
    seen = []

    def factory(length):
        seen.append(length)
        return "z" * length

    repo = InMemoryContentRepo()
    repo.insert("apps", {"id": str(uuid4()), "slug": "taken"})
    resolver = SlugResolver(repo, disambiguator_length=6, token_factory=factory)
    assert resolver.resolve_unique_slug("Taken", "apps") == "taken-zzzzzz"
    assert seen == [6]


def test_is_taken(repo):
    resolver = SlugResolver(repo)
    assert resolver.is_taken("my-app", "games")
    assert not resolver.is_taken("my-app", "games", exclude_id="g-1")
    assert not resolver.is_taken("other", "games")


def test_cycle_factory_eventually_finds_gap(repo):
    repo.insert("games", {"id": "g-3", "title": "My App", "slug": "my-app-1111"})
    resolver = SlugResolver(repo, token_factory=lambda n, c=cycle(["1111", "2222"]): next(c))
    assert resolver.resolve_unique_slug("My App", "games") == "my-app-2222"
