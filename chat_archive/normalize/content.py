"""Message content shapes found across export versions.

A raw ``content`` field is classified into exactly one variant, checked
in this order:

1. :class:`PlainText` -- the field is a string.
2. :class:`PartsContent` -- an object with a ``parts`` list.
3. :class:`TextField` -- an object with a string ``text`` field.
4. :class:`NoContent` -- anything else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class PartsContent:
    parts: list[Any]


@dataclass(frozen=True)
class TextField:
    text: str


@dataclass(frozen=True)
class NoContent:
    pass


type RawContent = PlainText | PartsContent | TextField | NoContent


def classify_content(value: Any) -> RawContent:
    if isinstance(value, str):
        return PlainText(value)
    if isinstance(value, dict):
        parts = value.get("parts")
        if isinstance(parts, list):
            return PartsContent(parts)
        text = value.get("text")
        if isinstance(text, str):
            return TextField(text)
    return NoContent()


def resolve_text(content: RawContent) -> str:
    """Flatten a content variant into a single (untrimmed) string."""
    match content:
        case PlainText(text=text) | TextField(text=text):
            return text
        case PartsContent(parts=parts):
            # Non-string parts (image pointers, tool payloads) are dropped.
            return " ".join(p for p in parts if isinstance(p, str))
        case _:
            return ""


def scrub(text: str) -> str:
    """Replace lone surrogates (from ``\\udXXX`` JSON escapes) with ``?``."""
    return text.encode("utf-8", "replace").decode("utf-8")
