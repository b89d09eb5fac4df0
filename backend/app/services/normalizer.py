"""
Slug and tag normalisation.

Pure functions that turn free text into URL-safe identifiers and
canonical tag lists.
"""
import re
from typing import Callable, Iterable

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Lowercase and replace every run of non [a-z0-9] characters with one hyphen.

    Leading and trailing hyphens are kept: "Hello, World! 2.0" -> "hello-world-2-0",
    "Hello!" -> "hello-".
    """
    return _NON_SLUG.sub("-", (name or "").lower())


def normalize_tag(token: str) -> str:
    return _WHITESPACE.sub("-", token.strip().lower())


def normalize_tags(value: str | Iterable[str] | None) -> list[str]:
    """
    Normalise a comma-separated string or a sequence of strings into tags.

    Each token is trimmed, lowercased and has inner whitespace runs replaced
    by a hyphen; empty tokens are dropped. Duplicates are kept here, the
    item service removes them before persisting.
    """
    if value is None:
        return []
    if isinstance(value, str):
        tokens = value.split(",")
    else:
        tokens = [token for token in value if isinstance(token, str)]

    tags = []
    for token in tokens:
        tag = normalize_tag(token)
        if tag:
            tags.append(tag)
    return tags


def dedupe(values: Iterable[str]) -> list[str]:
    """Drop repeated values, keeping the first occurrence order."""
    return list(dict.fromkeys(values))


def unique_slug(base: str, is_taken: Callable[[str], bool], fallback: str = "item") -> str:
    """Return base, or base-2, base-3, ... for the first slug nobody owns."""
    base = base or fallback
    candidate = base
    suffix = 2
    while is_taken(candidate):
        candidate = f"{base.rstrip('-')}-{suffix}"
        suffix += 1
    return candidate
