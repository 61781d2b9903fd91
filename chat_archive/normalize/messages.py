"""Normalize one raw message node into a :class:`Message`."""

from __future__ import annotations

import logging
from typing import Any

from chat_archive.core.types import Message, Role
from chat_archive.normalize.content import classify_content, resolve_text, scrub

logger = logging.getLogger(__name__)

DEFAULT_ROLE = Role.USER
_ROLES = frozenset(r.value for r in Role)

# Checked in order; the first string value wins.
TIMESTAMP_FIELDS = ("create_time", "timestamp")


def _canonical_role(value: Any) -> Role | None:
    if isinstance(value, str) and value in _ROLES:
        return Role(value)
    return None


def resolve_role(node: dict[str, Any]) -> Role:
    """``role`` → ``author.role`` → :data:`DEFAULT_ROLE`."""
    role = _canonical_role(node.get("role"))
    if role is not None:
        return role

    author = node.get("author")
    author_role = author.get("role") if isinstance(author, dict) else None
    role = _canonical_role(author_role)
    if role is not None:
        return role

    raw = node.get("role", author_role)
    if raw is not None:
        logger.debug("Coercing unrecognised role %r to %s", raw, DEFAULT_ROLE)
    return DEFAULT_ROLE


def resolve_timestamp(node: dict[str, Any]) -> str | None:
    for key in TIMESTAMP_FIELDS:
        value = node.get(key)
        if isinstance(value, str):
            return scrub(value)
    return None


def resolve_attachments(node: dict[str, Any]) -> tuple[str, ...]:
    refs = node.get("attachments")
    if not isinstance(refs, list):
        return ()
    return tuple(scrub(ref) for ref in refs if isinstance(ref, str))


def normalize_message(node: Any) -> Message | None:
    """Return a :class:`Message`, or ``None`` when the node should be dropped.

    A node is dropped when it is not an object, has no ``content`` at
    all, or its content flattens to whitespace.
    """
    if not isinstance(node, dict) or not node.get("content"):
        return None

    text = scrub(resolve_text(classify_content(node["content"]))).strip()
    if not text:
        return None

    return Message(
        role=resolve_role(node),
        content=text,
        timestamp=resolve_timestamp(node),
        attachments=resolve_attachments(node),
    )
