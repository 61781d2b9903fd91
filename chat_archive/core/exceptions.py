"""Custom exceptions for archive parsing."""


class ArchiveProcessingError(Exception):
    """Top-level error for the :func:`parse_archive` entry point.

    Raised (through one of its subclasses) when the archive as a whole
    cannot be processed.  No partial result accompanies it.
    """

    default_message = "Archive processing failed"

    def __init__(self, message: str | None = None):
        self.message = (
            f"{self.default_message}: {message}" if message else self.default_message
        )
        super().__init__(self.message)


class InvalidInputError(ArchiveProcessingError):
    default_message = "Invalid input"


class EmptyArchiveError(ArchiveProcessingError):
    default_message = "Empty archive"


class InvalidArchiveError(ArchiveProcessingError):
    default_message = "Invalid archive"


class EntryProcessingError(Exception):
    """Raised when a single archive entry cannot be decoded or parsed.

    Never escapes :func:`parse_archive`; the parser turns it into a
    :class:`~chat_archive.core.types.SkippedEntry`.
    """

    def __init__(self, entry_name: str, reason: str):
        self.entry_name = entry_name
        self.reason = reason
        self.message = f"Failed to process entry {entry_name}: {reason}"
        super().__init__(self.message)
