from chat_archive.normalize.content import (
    NoContent,
    PartsContent,
    PlainText,
    RawContent,
    TextField,
    classify_content,
    resolve_text,
    scrub,
)
from chat_archive.normalize.conversations import (
    derive_id,
    iter_mapping_nodes,
    normalize_conversation,
)
from chat_archive.normalize.messages import normalize_message

__all__ = [
    "NoContent",
    "PartsContent",
    "PlainText",
    "RawContent",
    "TextField",
    "classify_content",
    "derive_id",
    "iter_mapping_nodes",
    "normalize_conversation",
    "normalize_message",
    "resolve_text",
    "scrub",
]
