"""Domain types produced by the archive parser."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

UNTITLED_CONVERSATION = "Untitled Conversation"


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class EntryKind(StrEnum):
    """Routing decision for a single archive entry."""

    STRUCTURED_DOCUMENT = "structured_document"
    ATTACHMENT = "attachment"
    DISCARD = "discard"


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Message(_Frozen):
    role: Role
    content: str = Field(min_length=1)
    timestamp: str | None = None
    attachments: tuple[str, ...] = ()


class ConversationMetadata(_Frozen):
    """Provenance kept for diagnostics."""

    original_filename: str
    message_count: int


class Conversation(_Frozen):
    id: str
    title: str = UNTITLED_CONVERSATION
    messages: tuple[Message, ...]
    created_at: str
    updated_at: str | None = None
    metadata: ConversationMetadata

    @model_validator(mode="after")
    def _has_messages(self) -> Conversation:
        if not self.messages:
            raise ValueError("a conversation needs at least one message")
        return self


class Attachment(_Frozen):
    name: str
    content: bytes
    content_type: str
    size: int
    relative_path: str

    @model_validator(mode="after")
    def _size_matches_content(self) -> Attachment:
        if self.size != len(self.content):
            raise ValueError(
                f"size {self.size} does not match content length {len(self.content)}"
            )
        return self


# ---------------------------------------------------------------------------
# Per-entry outcomes
# ---------------------------------------------------------------------------


class SkippedEntry(_Frozen):
    """Warning event for an entry that contributed nothing to the result."""

    entry_name: str
    reason: str


@dataclass(frozen=True)
class NormalizedEntry:
    """Successful outcome of processing one entry.

    A structured document may hold zero or more conversations (bundled
    exports hold many); an attachment entry holds exactly one attachment.
    """

    entry_name: str
    conversations: list[Conversation] = field(default_factory=list)
    attachment: Attachment | None = None


type EntryOutcome = NormalizedEntry | SkippedEntry


@dataclass
class RawEntry:
    """One named item of the archive, with its payload read on demand."""

    name: str
    is_dir: bool
    read: Callable[[], bytes] = field(repr=False)


# ---------------------------------------------------------------------------
# Parse result
# ---------------------------------------------------------------------------


class ParseSummary(_Frozen):
    total_entries: int
    conversation_count: int
    attachment_count: int
    skipped_count: int = 0


class ParseResult(_Frozen):
    """Result returned from :func:`~chat_archive.parse_archive`."""

    conversations: tuple[Conversation, ...] = ()
    attachments: tuple[Attachment, ...] = ()
    metadata: ParseSummary
    skipped: tuple[SkippedEntry, ...] = ()
