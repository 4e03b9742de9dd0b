import pytest

from installmod.adapters.memory_repo import InMemoryContentRepo
from installmod.domain.errors import NotFoundError, RepositoryError


@pytest.fixture
def repo():
    return InMemoryContentRepo()


def test_insert_assigns_id(repo):
    row = repo.insert("tags", {"name": "a", "slug": "a"})
    assert row["id"]
    assert repo.get("tags", row["id"])["slug"] == "a"


def test_get_returns_copy(repo):
    row = repo.insert("tags", {"name": "a", "slug": "a"})
    repo.get("tags", row["id"])["slug"] = "changed"
    assert repo.get("tags", row["id"])["slug"] == "a"


def test_unique_slug(repo):
    repo.insert("apps", {"slug": "x"})
    with pytest.raises(RepositoryError) as exc:
        repo.insert("apps", {"slug": "x"})
    assert exc.value.constraint == "unique"
    repo.insert("games", {"slug": "x"})


def test_unique_on_update(repo):
    repo.insert("apps", {"slug": "x"})
    other = repo.insert("apps", {"slug": "y"})
    with pytest.raises(RepositoryError):
        repo.update("apps", other["id"], {"slug": "x"})


def test_update_missing(repo):
    with pytest.raises(NotFoundError):
        repo.update("apps", "nope", {"slug": "z"})


def test_find_where_order_page(repo):
    for n, status in enumerate(["draft", "published", "published", "published"]):
        repo.insert("blogs", {"slug": f"p{n}", "status": status, "n": n})

    rows = repo.find("blogs", {"status": "published"}, order_by="n", descending=True, limit=2, offset=1)
    assert [r["n"] for r in rows] == [2, 1]
    assert repo.count("blogs", {"status": ["draft", "scheduled"]}) == 1


def test_search_is_case_insensitive(repo):
    repo.insert("apps", {"slug": "a", "title": "Spotify Premium", "description": ""})
    repo.insert("apps", {"slug": "b", "title": "Other", "description": "like SPOTIFY"})
    assert len(repo.search("apps", "spotify", ["title", "description"])) == 2


def test_delete_where(repo):
    repo.insert("mod_features", {"content_id": "1", "feature": "a"})
    repo.insert("mod_features", {"content_id": "1", "feature": "b"})
    repo.insert("mod_features", {"content_id": "2", "feature": "c"})
    assert repo.delete_where("mod_features", {"content_id": "1"}) == 2
    assert repo.count("mod_features") == 1


def test_transaction_rolls_back(repo):
    repo.insert("tags", {"slug": "keep"})
    with pytest.raises(RepositoryError):
        with repo.transaction():
            repo.delete_where("tags", {})
            repo.insert("tags", {"slug": "new"})
            repo.insert("tags", {"slug": "new"})
    assert [r["slug"] for r in repo.find("tags")] == ["keep"]


def test_nested_transaction_joins_outer(repo):
    with pytest.raises(RuntimeError):
        with repo.transaction():
            with repo.transaction():
                repo.insert("tags", {"slug": "inner"})
            raise RuntimeError("outer fails")
    assert repo.count("tags") == 0
