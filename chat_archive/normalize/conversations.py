"""Normalize one decoded conversation document into a :class:`Conversation`.

Two message layouts are supported:

- **flat** -- ``{"messages": [node, node, ...]}``, kept in list order.
- **mapping** -- ``{"mapping": {node_id: {"message": node, ...}, ...}}``,
  the tree-shaped layout of newer exports.  Nodes are taken in the
  mapping's enumeration order, which is not necessarily the order in
  which the conversation happened.

Older exports wrap the whole document in a ``{"conversation": {...}}``
envelope; one level of it is removed before anything else.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from typing import Any

from chat_archive.config import DEFAULT_SETTINGS, ParserSettings
from chat_archive.core.types import Conversation, ConversationMetadata, Message
from chat_archive.normalize.content import scrub
from chat_archive.normalize.messages import normalize_message

logger = logging.getLogger(__name__)

# Timestamps above this threshold are treated as milliseconds (year 2100+)
_MAX_SECONDS_EPOCH = 4_102_444_800  # 2100-01-01 00:00 UTC

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

type MappingItems = Iterable[tuple[str, Any]]


def derive_id(entry_name: str) -> str:
    """Stable conversation id for documents that carry none."""
    return _NON_ALNUM.sub("_", entry_name.replace(".json", "", 1))


def _safe_timestamp(ts: float | int) -> str:
    """Render a Unix epoch as ISO-8601, handling ms-vs-s ambiguity."""
    ts = float(ts)
    if ts > _MAX_SECONDS_EPOCH:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC).isoformat()


def _timestamp(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return scrub(value)
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return _safe_timestamp(value)
        except (ValueError, OverflowError, OSError):
            return None
    return None


def _first_text(doc: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = doc.get(key)
        if isinstance(value, str) and value:
            return scrub(value)
        if isinstance(value, int | float) and not isinstance(value, bool) and value:
            return str(value)
    return None


def _first_timestamp(doc: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        ts = _timestamp(doc.get(key))
        if ts is not None:
            return ts
    return None


def unwrap(document: dict[str, Any]) -> dict[str, Any]:
    inner = document.get("conversation")
    if isinstance(inner, dict):
        return inner
    return document


def iter_flat_nodes(messages: list[Any]) -> Iterator[Any]:
    yield from messages


def iter_mapping_nodes(items: MappingItems) -> Iterator[Any]:
    """Yield the message node held by each mapping wrapper, in *items* order.

    Wrappers that are not objects are skipped.  A wrapper without a
    usable ``message`` key is treated as the message node itself.
    """
    for _node_id, wrapper in items:
        if not isinstance(wrapper, dict):
            continue
        yield wrapper.get("message") or wrapper


def discover_nodes(doc: dict[str, Any]) -> Iterator[Any]:
    source = doc.get("messages") or doc.get("mapping")
    if isinstance(source, list):
        return iter_flat_nodes(source)
    if isinstance(source, dict):
        return iter_mapping_nodes(list(source.items()))
    return iter(())


def normalize_messages(nodes: Iterable[Any]) -> list[Message]:
    messages: list[Message] = []
    for node in nodes:
        message = normalize_message(node)
        if message is not None:
            messages.append(message)
    return messages


def normalize_conversation(
    document: Any,
    entry_name: str,
    *,
    fallback_id: str | None = None,
    settings: ParserSettings = DEFAULT_SETTINGS,
) -> Conversation | None:
    """Build a :class:`Conversation` from *document*, or ``None`` if unusable.

    *fallback_id* replaces the entry-name derived id when the document
    carries no id of its own (used for documents bundled in one file).
    """
    if not isinstance(document, dict):
        return None
    doc = unwrap(document)

    messages = normalize_messages(discover_nodes(doc))
    if not messages:
        logger.debug("No usable messages in %s", entry_name)
        return None

    conv_id = _first_text(doc, "id", "conversation_id") or fallback_id
    return Conversation(
        id=conv_id or derive_id(entry_name),
        title=_first_text(doc, "title", "name") or settings.untitled_title,
        messages=tuple(messages),
        created_at=(
            _first_timestamp(doc, "create_time", "created_at")
            or datetime.now(UTC).isoformat()
        ),
        updated_at=_first_timestamp(doc, "update_time", "updated_at"),
        metadata=ConversationMetadata(
            original_filename=entry_name,
            message_count=len(messages),
        ),
    )
