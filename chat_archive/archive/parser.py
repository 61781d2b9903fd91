"""Archive parser: ZIP buffer in, :class:`ParseResult` out.

Each entry is processed on its own.  A document that cannot be decoded
becomes a :class:`SkippedEntry` (and a log warning) instead of failing
the whole archive; only archive-level problems raise.
"""

from __future__ import annotations

import codecs
import io
import json
import logging
import zipfile
import zlib
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Any

import ijson
from pydantic import ValidationError

from chat_archive.archive.classifier import basename, classify_entry
from chat_archive.archive.content_types import infer_content_type
from chat_archive.config import DEFAULT_SETTINGS, ParserSettings
from chat_archive.core.exceptions import (
    EmptyArchiveError,
    EntryProcessingError,
    InvalidArchiveError,
    InvalidInputError,
)
from chat_archive.core.types import (
    Attachment,
    Conversation,
    EntryKind,
    EntryOutcome,
    NormalizedEntry,
    ParseResult,
    ParseSummary,
    RawEntry,
    SkippedEntry,
)
from chat_archive.normalize.conversations import derive_id, normalize_conversation

logger = logging.getLogger(__name__)

# Raised by zipfile while inflating a single member (bad CRC, unsupported
# compression, encryption).
_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
)

# Raised while turning document bytes into conversations.
_DECODE_ERRORS = (
    # JSONDecodeError, UnicodeDecodeError and int-digit limits
    ValueError,
    ijson.JSONError,
    RecursionError,
    ValidationError,
)


def _coerce_buffer(buffer: Any) -> bytes:
    if buffer is None:
        raise InvalidInputError("no archive buffer supplied")
    if not isinstance(buffer, bytes | bytearray | memoryview):
        raise InvalidInputError(
            f"expected a bytes-like buffer, got {type(buffer).__name__}"
        )
    data = bytes(buffer)
    if not data:
        raise EmptyArchiveError("buffer has zero length")
    return data


def _open_zip(data: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, OSError) as exc:
        raise InvalidArchiveError(str(exc)) from exc


def iter_entries(zf: zipfile.ZipFile) -> Iterator[RawEntry]:
    for info in zf.infolist():
        yield RawEntry(
            name=info.filename,
            is_dir=info.is_dir(),
            read=partial(zf.read, info),
        )


def _read(entry: RawEntry) -> bytes:
    try:
        return entry.read()
    except _READ_ERRORS as exc:
        raise EntryProcessingError(entry.name, f"unreadable entry: {exc}") from exc


def load_conversations(
    entry_name: str,
    raw: bytes,
    settings: ParserSettings = DEFAULT_SETTINGS,
) -> list[Conversation]:
    """Decode one document entry into zero or more conversations.

    A document whose top level is an array (the bundled
    ``conversations.json`` of full exports) is streamed item by item;
    every item is normalized as its own conversation document.

    Raises :class:`EntryProcessingError` if the bytes are not UTF-8 JSON.
    """
    try:
        text = raw.decode("utf-8-sig")
        if not text.lstrip().startswith("["):
            conversation = normalize_conversation(
                json.loads(text), entry_name, settings=settings
            )
            return [conversation] if conversation is not None else []

        base_id = derive_id(entry_name)
        stream = io.BytesIO(raw.removeprefix(codecs.BOM_UTF8))
        conversations: list[Conversation] = []
        items = ijson.items(stream, "item", use_float=True)
        for index, document in enumerate(items):
            conversation = normalize_conversation(
                document,
                entry_name,
                fallback_id=f"{base_id}_{index}",
                settings=settings,
            )
            if conversation is not None:
                conversations.append(conversation)
        return conversations
    except _DECODE_ERRORS as exc:
        reason = f"{type(exc).__name__}: {exc}"
        raise EntryProcessingError(entry_name, reason) from exc


def build_attachment(entry_name: str, raw: bytes) -> Attachment:
    return Attachment(
        name=basename(entry_name),
        content=raw,
        content_type=infer_content_type(entry_name),
        size=len(raw),
        relative_path=entry_name,
    )


class ArchiveParser:
    """Turns an export archive into conversations and attachments.

    Usage::

        parser = ArchiveParser(ParserSettings(max_workers=4))
        result = parser.parse(zip_bytes)
        for conversation in result.conversations:
            ...

    With ``max_workers > 1`` entry payloads are still read on the
    calling thread; decoding and normalization are fanned out to a
    thread pool and merged back in archive order.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self._settings = settings or DEFAULT_SETTINGS

    @property
    def settings(self) -> ParserSettings:
        return self._settings

    # ---- entry point ----

    def parse(self, buffer: bytes | bytearray | memoryview | None) -> ParseResult:
        data = _coerce_buffer(buffer)
        with _open_zip(data) as zf:
            entries = list(iter_entries(zf))
            outcomes = self.process_entries(entries)
        return self._collect(outcomes, total_entries=len(entries))

    # ---- per-entry processing ----

    def process_entries(self, entries: Iterable[RawEntry]) -> list[EntryOutcome]:
        work: list[tuple[RawEntry, EntryKind]] = []
        for entry in entries:
            if entry.is_dir:
                continue
            kind = classify_entry(entry.name, self._settings)
            logger.debug("Entry %s classified as %s", entry.name, kind)
            if kind is not EntryKind.DISCARD:
                work.append((entry, kind))

        if self._settings.max_workers <= 1 or len(work) <= 1:
            return [self.process_entry(entry, kind) for entry, kind in work]

        # zipfile reads share one file handle; load payloads up front.
        loaded: list[tuple[str, EntryKind, bytes] | SkippedEntry] = []
        for entry, kind in work:
            try:
                loaded.append((entry.name, kind, _read(entry)))
            except EntryProcessingError as exc:
                loaded.append(self._skip(exc))

        with ThreadPoolExecutor(max_workers=self._settings.max_workers) as pool:
            futures = [
                item if isinstance(item, SkippedEntry)
                else pool.submit(self._normalize, *item)
                for item in loaded
            ]
            return [
                f if isinstance(f, SkippedEntry) else f.result() for f in futures
            ]

    def process_entry(self, entry: RawEntry, kind: EntryKind) -> EntryOutcome:
        try:
            raw = _read(entry)
        except EntryProcessingError as exc:
            return self._skip(exc)
        return self._normalize(entry.name, kind, raw)

    def _normalize(self, name: str, kind: EntryKind, raw: bytes) -> EntryOutcome:
        if kind is EntryKind.ATTACHMENT:
            attachment = build_attachment(name, raw)
            return NormalizedEntry(entry_name=name, attachment=attachment)
        try:
            conversations = load_conversations(name, raw, self._settings)
        except EntryProcessingError as exc:
            return self._skip(exc)
        return NormalizedEntry(entry_name=name, conversations=conversations)

    @staticmethod
    def _skip(exc: EntryProcessingError) -> SkippedEntry:
        logger.warning(
            "Failed to process entry %s: %s",
            exc.entry_name,
            exc.reason,
            extra={"entry_name": exc.entry_name, "reason": exc.reason},
        )
        return SkippedEntry(entry_name=exc.entry_name, reason=exc.reason)

    # ---- aggregation ----

    @staticmethod
    def _collect(
        outcomes: Iterable[EntryOutcome], *, total_entries: int
    ) -> ParseResult:
        conversations: list[Conversation] = []
        attachments: list[Attachment] = []
        skipped: list[SkippedEntry] = []

        for outcome in outcomes:
            match outcome:
                case SkippedEntry():
                    skipped.append(outcome)
                case NormalizedEntry(attachment=Attachment() as attachment):
                    attachments.append(attachment)
                case NormalizedEntry():
                    conversations.extend(outcome.conversations)

        return ParseResult(
            conversations=tuple(conversations),
            attachments=tuple(attachments),
            skipped=tuple(skipped),
            metadata=ParseSummary(
                total_entries=total_entries,
                conversation_count=len(conversations),
                attachment_count=len(attachments),
                skipped_count=len(skipped),
            ),
        )


def parse_archive(
    buffer: bytes | bytearray | memoryview | None,
    *,
    settings: ParserSettings | None = None,
) -> ParseResult:
    """Parse an export archive held in memory.

    Raises :class:`InvalidInputError` if *buffer* is ``None``,
    :class:`EmptyArchiveError` if it is empty and
    :class:`InvalidArchiveError` if it is not a readable ZIP archive.
    """
    return ArchiveParser(settings).parse(buffer)


def parse_archive_file(
    path: str | Path, *, settings: ParserSettings | None = None
) -> ParseResult:
    """Read *path* from disk and delegate to :func:`parse_archive`."""
    return parse_archive(Path(path).read_bytes(), settings=settings)
