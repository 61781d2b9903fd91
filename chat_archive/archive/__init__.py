from chat_archive.archive.classifier import classify_entry
from chat_archive.archive.content_types import DEFAULT_CONTENT_TYPE, infer_content_type
from chat_archive.archive.parser import ArchiveParser, parse_archive, parse_archive_file

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "ArchiveParser",
    "classify_entry",
    "infer_content_type",
    "parse_archive",
    "parse_archive_file",
]
