"""Slug and read-time helpers for blogstore."""

import math
import re

WORDS_PER_MINUTE = 200

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def generate_slug(title: str) -> str:
    """Convert a post title to a URL-friendly slug.

    Anything that is not an ASCII letter, digit or whitespace is dropped,
    then each whitespace run becomes a single hyphen. Surrounding whitespace
    is not trimmed, so ``"  A   B "`` becomes ``"-a-b-"``.
    """
    slug = _NON_SLUG_CHARS.sub("", (title or "").lower())
    return _WHITESPACE.sub("-", slug)


def calculate_read_time(content: str) -> int:
    """Estimate reading time in whole minutes (never less than 1)."""
    word_count = len((content or "").split())
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))
