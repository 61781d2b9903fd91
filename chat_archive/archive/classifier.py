"""Entry-name based routing of archive entries.

Only the entry name is inspected; payloads are never read here.
"""

from __future__ import annotations

from chat_archive.config import DEFAULT_SETTINGS, ParserSettings
from chat_archive.core.types import EntryKind


def basename(name: str) -> str:
    """Return the last path component of an archive entry name."""
    return name.rstrip("/").rsplit("/", 1)[-1] or name


def _has_extension(name: str, extensions: frozenset[str]) -> bool:
    lower = name.lower()
    return any(lower.endswith(ext) for ext in extensions)


def is_system_entry(name: str, settings: ParserSettings = DEFAULT_SETTINGS) -> bool:
    """Platform metadata (``__MACOSX/...``) and hidden files."""
    lower = name.lower()
    if any(marker in lower for marker in settings.system_markers):
        return True
    return basename(name).startswith(settings.hidden_prefix)


def classify_entry(
    name: str, settings: ParserSettings = DEFAULT_SETTINGS
) -> EntryKind:
    """Decide whether *name* is a conversation document, an attachment, or noise.

    Conversation documents live at the archive root; a document-named
    entry inside a subdirectory is never a conversation and is
    discarded.
    """
    if _has_extension(name, settings.document_extensions):
        if "/" not in name:
            return EntryKind.STRUCTURED_DOCUMENT
        return EntryKind.DISCARD

    if is_system_entry(name, settings):
        return EntryKind.DISCARD

    if _has_extension(name, settings.attachment_extensions):
        return EntryKind.ATTACHMENT
    return EntryKind.DISCARD
