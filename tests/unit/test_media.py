import pytest

from installmod.adapters.media import BucketMediaResolver


@pytest.fixture
def media():
    return BucketMediaResolver("https://storage.installmod.com/")


def test_bucket_path(media):
    assert (
        media.resolve("icons/pubg.png", "app-icons")
        == "https://storage.installmod.com/storage/v1/object/public/app-icons/icons/pubg.png"
    )


def test_leading_slash_and_spaces(media):
    assert media.resolve("/my shot.png", "screenshots").endswith("/public/screenshots/my%20shot.png")


def test_absolute_urls_pass_through(media):
    assert media.resolve("https://cdn.example/x.png", "app-icons") == "https://cdn.example/x.png"
    assert media.resolve("http://cdn.example/x.png") == "http://cdn.example/x.png"


@pytest.mark.parametrize("value", [None, ""])
def test_empty_gives_placeholder(media, value):
    assert media.resolve(value, "app-icons") == "/placeholder.svg"


def test_path_without_bucket_gives_placeholder(media):
    assert media.resolve("icons/pubg.png") == "/placeholder.svg"


def test_custom_placeholder():
    assert BucketMediaResolver("https://s", placeholder="/none.png").resolve(None) == "/none.png"


@pytest.mark.parametrize(
    "value",
    ["HTTPS://cdn.example/x.png", "Http://cdn.example/x.png", "//cdn.example/x.png"],
)
def test_absolute_url_detection_ignores_case_and_scheme_relative(media, value):
    assert media.resolve(value, "app-icons") == value
