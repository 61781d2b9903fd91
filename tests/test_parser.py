from __future__ import annotations

import io
import json
import logging
import zipfile
from pathlib import Path

import pytest

from chat_archive import (
    ArchiveParser,
    EmptyArchiveError,
    InvalidArchiveError,
    InvalidInputError,
    ParserSettings,
    Role,
    parse_archive,
    parse_archive_file,
)
from chat_archive.core.exceptions import ArchiveProcessingError
from chat_archive.testing import ArchiveParserTestKit, build_archive
from tests.conftest import BUNDLED_EXPORT_JSON, PNG_BYTES


def _doc(**fields) -> str:
    return json.dumps(fields)


class TestArchiveLevelErrors:
    def test_none_buffer(self):
        with pytest.raises(InvalidInputError):
            parse_archive(None)

    def test_wrong_type(self):
        with pytest.raises(InvalidInputError):
            parse_archive("PK\x03\x04")  # type: ignore[arg-type]

    @pytest.mark.parametrize("buffer", [b"", bytearray(), memoryview(b"")])
    def test_empty_buffer(self, buffer):
        with pytest.raises(EmptyArchiveError):
            parse_archive(buffer)

    @pytest.mark.parametrize(
        "buffer",
        [
            b"just some plain text, definitely not a zip",
            b"PK\x03\x04",
            b"\x00" * 64,
        ],
    )
    def test_not_an_archive(self, buffer: bytes):
        with pytest.raises(InvalidArchiveError):
            parse_archive(buffer)

    def test_truncated_archive(self):
        data = build_archive({"a.json": _doc(messages=[{"content": "x"}])})
        with pytest.raises(InvalidArchiveError):
            parse_archive(data[: len(data) // 2])

    def test_errors_share_a_base(self):
        for exc in (InvalidInputError, EmptyArchiveError, InvalidArchiveError):
            assert issubclass(exc, ArchiveProcessingError)


class TestFlatArrayArchive:
    def test_documents_and_attachments(self):
        data = build_archive(
            {
                "conversation.json": _doc(
                    id="c1",
                    title="Greeting",
                    messages=[
                        {"role": "user", "content": "Hello"},
                        {"role": "assistant", "content": {"parts": ["Hi", "there"]}},
                    ],
                ),
                "images/pic.png": PNG_BYTES,
            }
        )
        result = parse_archive(data)

        assert len(result.conversations) == 1
        conv = result.conversations[0]
        assert conv.id == "c1"
        assert len(conv.messages) == 2
        assert "Hi" in conv.messages[1].content
        assert "there" in conv.messages[1].content

        assert len(result.attachments) == 1
        att = result.attachments[0]
        assert att.name == "pic.png"
        assert att.relative_path == "images/pic.png"
        assert att.content == PNG_BYTES
        assert att.content_type == "image/png"
        assert att.size > 0

        assert result.metadata.total_entries == 2
        assert result.metadata.conversation_count == 1
        assert result.metadata.attachment_count == 1


class TestMappingGraphArchive:
    def test_message_count_matches_usable_nodes(self):
        def node(role: str, content) -> dict:
            return {"message": {"author": {"role": role}, "content": content}}

        mapping = {
            "n0": {"message": None},
            "n1": node("user", {"parts": ["q"]}),
            "n2": node("assistant", "a"),
            "n3": node("assistant", {"parts": []}),
        }
        result = parse_archive(build_archive({"chat.json": _doc(mapping=mapping)}))
        assert len(result.conversations) == 1
        conv = result.conversations[0]
        assert len(conv.messages) == 2
        assert [m.role for m in conv.messages] == [Role.USER, Role.ASSISTANT]
        assert conv.id == "chat"


class TestDropAndRouting:
    def test_whitespace_only_conversation_dropped_silently(
        self, caplog: pytest.LogCaptureFixture
    ):
        data = build_archive(
            {"empty.json": _doc(id="e", messages=[{"role": "user", "content": " "}])}
        )
        with caplog.at_level(logging.WARNING):
            result = parse_archive(data)
        assert result.conversations == ()
        assert result.skipped == ()
        assert caplog.records == []

    def test_nested_documents_not_conversations(self):
        doc = _doc(id="nested", messages=[{"role": "user", "content": "hi"}])
        result = parse_archive(build_archive({"sub/doc.json": doc}))
        assert result.conversations == ()
        assert result.attachments == ()
        assert result.metadata.total_entries == 1

    def test_unknown_extension_falls_back_to_octet_stream(self):
        settings = ParserSettings(attachment_extensions=frozenset({".dat"}))
        data = build_archive({"blobs/payload.dat": b"\x01\x02\x03"})
        result = parse_archive(data, settings=settings)
        assert len(result.attachments) == 1
        assert result.attachments[0].content_type == "application/octet-stream"
        assert result.attachments[0].size == 3

    def test_tar_falls_back_to_octet_stream_by_default(self):
        result = parse_archive(build_archive({"files/a.tar": b"abc"}))
        [att] = result.attachments
        assert att.name == "a.tar"
        assert att.content_type == "application/octet-stream"
        assert att.size == 3

    def test_directories_counted_but_not_materialized(self):
        data = build_archive({"images/": b"", "images/a.gif": b"GIF89a"})
        result = parse_archive(data)
        assert result.metadata.total_entries == 2
        assert [a.name for a in result.attachments] == ["a.gif"]


class TestPartialFailure:
    def test_invalid_document_beside_valid_one(self, caplog: pytest.LogCaptureFixture):
        data = build_archive(
            {
                "broken.json": "{not valid json]]]",
                "good.json": _doc(id="ok", messages=[{"content": "fine"}]),
            }
        )
        with caplog.at_level(logging.WARNING, logger="chat_archive.archive.parser"):
            result = parse_archive(data)

        assert [c.id for c in result.conversations] == ["ok"]
        assert len(result.skipped) == 1
        assert result.skipped[0].entry_name == "broken.json"
        assert "JSONDecodeError" in result.skipped[0].reason
        assert result.metadata.skipped_count == 1

        [record] = caplog.records
        assert record.entry_name == "broken.json"  # type: ignore[attr-defined]
        assert "broken.json" in record.getMessage()

    def test_oversized_integer_literal(self):
        huge = "1" * 5000
        data = build_archive(
            {
                "huge.json": '{"id": ' + huge + ', "messages": [{"content": "x"}]}',
                "good.json": _doc(id="ok", messages=[{"content": "fine"}]),
            }
        )
        result = parse_archive(data)
        assert [c.id for c in result.conversations] == ["ok"]
        assert [s.entry_name for s in result.skipped] == ["huge.json"]
        assert "ValueError" in result.skipped[0].reason

    def test_lone_surrogate_keeps_conversation(self):
        doc = '{"id": "s", "messages": [{"content": "hi \\ud800 there"}]}'
        result = parse_archive(build_archive({"surrogate.json": doc}))
        assert result.skipped == ()
        [conv] = result.conversations
        assert conv.messages[0].content == "hi ? there"

    def test_undecodable_bytes(self):
        data = build_archive(
            {
                "latin.json": b'{"messages": [{"content": "caf\xe9"}]}',
                "good.json": _doc(messages=[{"content": "fine"}]),
            }
        )
        result = parse_archive(data)
        assert len(result.conversations) == 1
        assert "UnicodeDecodeError" in result.skipped[0].reason

    def test_bom_is_tolerated(self):
        raw = b"\xef\xbb\xbf" + _doc(messages=[{"content": "bom"}]).encode()
        result = parse_archive(build_archive({"bom.json": raw}))
        assert result.conversations[0].messages[0].content == "bom"

    def test_corrupt_member_skipped(self):
        buf = io.BytesIO()
        payload = b"PAYLOAD-TO-CORRUPT"
        with zipfile.ZipFile(buf, "w", zipfile.ZIP_STORED) as zf:
            zf.writestr("files/report.pdf", payload)
            zf.writestr("good.json", _doc(messages=[{"content": "fine"}]))
        data = buf.getvalue().replace(payload, b"X" * len(payload), 1)

        result = parse_archive(data)
        assert len(result.conversations) == 1
        assert result.attachments == ()
        assert result.skipped[0].entry_name == "files/report.pdf"


class TestBundledConversations:
    def test_each_array_item_is_a_conversation(self):
        result = parse_archive(
            build_archive({"conversations.json": BUNDLED_EXPORT_JSON})
        )
        assert [c.id for c in result.conversations] == [
            "conversations_0",
            "bundled-3",
        ]
        first = result.conversations[0]
        assert first.title == "First bundled chat"
        assert [m.content for m in first.messages] == ["hello", "hi there"]
        assert first.created_at.startswith("2023-11-14T22:13:20")

    def test_truncated_bundle_skips_whole_entry(self):
        truncated = BUNDLED_EXPORT_JSON[: len(BUNDLED_EXPORT_JSON) // 2]
        result = parse_archive(build_archive({"conversations.json": truncated}))
        assert result.conversations == ()
        assert len(result.skipped) == 1


class TestConcurrency:
    def test_threaded_matches_sequential(self, export_archive: bytes):
        sequential = parse_archive(export_archive)
        threaded = ArchiveParser(ParserSettings(max_workers=3)).parse(export_archive)
        assert [c.id for c in threaded.conversations] == [
            c.id for c in sequential.conversations
        ]
        assert threaded.attachments == sequential.attachments
        assert threaded.metadata == sequential.metadata

    def test_threaded_partial_failure(self):
        data = build_archive(
            {
                "a.json": "[{",
                "b.json": _doc(messages=[{"content": "b"}]),
                "c.txt": "c",
            }
        )
        result = parse_archive(data, settings=ParserSettings(max_workers=2))
        assert [c.id for c in result.conversations] == ["b"]
        assert [a.name for a in result.attachments] == ["c.txt"]
        assert [s.entry_name for s in result.skipped] == ["a.json"]


class TestParseArchiveFile:
    def test_reads_from_disk(self, tmp_path: Path, export_archive: bytes):
        path = tmp_path / "export.zip"
        path.write_bytes(export_archive)
        result = parse_archive_file(path)
        assert result.metadata.conversation_count == 2


class TestMixedExportArchive(ArchiveParserTestKit):
    expected_conversation_count = 2
    expected_attachment_count = 2

    @pytest.fixture()
    def archive_bytes(self, export_archive: bytes) -> bytes:
        return export_archive

    def test_total_entries(self, result):
        assert result.metadata.total_entries == 8

    def test_noise_discarded(self, result):
        assert sorted(a.relative_path for a in result.attachments) == [
            "files/notes.txt",
            "images/pic.png",
        ]


class TestBundledExportArchive(ArchiveParserTestKit):
    expected_conversation_count = 2
    expected_attachment_count = 1
    expected_skipped_count = 1

    @pytest.fixture()
    def archive_bytes(self) -> bytes:
        return build_archive(
            {
                "conversations.json": BUNDLED_EXPORT_JSON,
                "user.json": "{ this is not json",
                "file-abc123.webp": b"RIFF\x00\x00\x00\x00WEBP",
            }
        )
