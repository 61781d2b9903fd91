"""Parse conversational-AI export archives into normalized conversations."""

from chat_archive.archive import (
    ArchiveParser,
    classify_entry,
    infer_content_type,
    parse_archive,
    parse_archive_file,
)
from chat_archive.config import ParserSettings, load_settings
from chat_archive.core import (
    ArchiveProcessingError,
    Attachment,
    Conversation,
    EmptyArchiveError,
    EntryKind,
    InvalidArchiveError,
    InvalidInputError,
    Message,
    ParseResult,
    ParseSummary,
    Role,
    SkippedEntry,
)
from chat_archive.normalize import normalize_conversation, normalize_message

__all__ = [
    "ArchiveParser",
    "ArchiveProcessingError",
    "Attachment",
    "Conversation",
    "EmptyArchiveError",
    "EntryKind",
    "InvalidArchiveError",
    "InvalidInputError",
    "Message",
    "ParseResult",
    "ParseSummary",
    "ParserSettings",
    "Role",
    "SkippedEntry",
    "classify_entry",
    "infer_content_type",
    "load_settings",
    "normalize_conversation",
    "normalize_message",
    "parse_archive",
    "parse_archive_file",
]
