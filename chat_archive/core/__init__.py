from chat_archive.core.exceptions import (
    ArchiveProcessingError,
    EmptyArchiveError,
    EntryProcessingError,
    InvalidArchiveError,
    InvalidInputError,
)
from chat_archive.core.types import (
    UNTITLED_CONVERSATION,
    Attachment,
    Conversation,
    ConversationMetadata,
    EntryKind,
    EntryOutcome,
    Message,
    NormalizedEntry,
    ParseResult,
    ParseSummary,
    RawEntry,
    Role,
    SkippedEntry,
)

__all__ = [
    "UNTITLED_CONVERSATION",
    "ArchiveProcessingError",
    "Attachment",
    "Conversation",
    "ConversationMetadata",
    "EmptyArchiveError",
    "EntryKind",
    "EntryOutcome",
    "EntryProcessingError",
    "InvalidArchiveError",
    "InvalidInputError",
    "Message",
    "NormalizedEntry",
    "ParseResult",
    "ParseSummary",
    "RawEntry",
    "Role",
    "SkippedEntry",
]
