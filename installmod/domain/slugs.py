import re
import secrets

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def _normalize(text: str) -> str:
    text = text.lower()
    text = _DISALLOWED.sub("", text)
    text = _WHITESPACE.sub("-", text)
    text = _HYPHENS.sub("-", text)
    return text.strip("-")


def generate_slug(title: str, disambiguator: str | None = None) -> str:
    """
    Convert a title into a URL-safe slug.

    "PUBG Mobile: New State!!" -> "pubg-mobile-new-state". When a
    disambiguator is given it is appended after a hyphen. The result is
    empty only when the title holds no ASCII letters or digits.
    """
    slug = _normalize(title)
    if disambiguator:
        suffix = _normalize(disambiguator)
        if suffix:
            slug = f"{slug}-{suffix}" if slug else suffix
    return slug


def is_valid_slug(slug: str) -> bool:
    """Check if slug is valid (lowercase alphanumeric + hyphens)."""
    return bool(SLUG_PATTERN.match(slug))


def new_disambiguator(length: int = 8) -> str:
    """Random lowercase hex token used to break slug collisions."""
    return secrets.token_hex((length + 1) // 2)[:length]
