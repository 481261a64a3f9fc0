"""Utility helpers for question ids and page text."""

from __future__ import annotations

import re
import textwrap

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_QUESTION_ID_RE = re.compile(r"^[a-z0-9_-]+$")


def slugify(value: str) -> str:
    """Normalize a human-readable value into a slug usable as a question id."""
    normalized = value.strip().lower()
    slug = _SLUG_RE.sub("-", normalized).strip("-")
    return slug or "question"


def is_valid_question_id(value: str) -> bool:
    return bool(_QUESTION_ID_RE.match(value))


def wrap_description(text: str | None, title: str, *, min_width: int = 50) -> list[str]:
    """Wrap a description to at least ``min_width`` or twice the title length."""
    if not text:
        return []
    width = max(min_width, len(title) * 2)
    lines: list[str] = []
    for paragraph in text.splitlines():
        lines.extend(textwrap.wrap(paragraph, width=width) or [""])
    return lines
