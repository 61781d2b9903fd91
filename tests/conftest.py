from __future__ import annotations

import json
from pathlib import Path

import pytest

from chat_archive.testing import build_archive

FIXTURES_DIR = Path(__file__).parent / "fixtures"
EXPORTS_DIR = FIXTURES_DIR / "exports"

FLAT_EXPORT_JSON: str = (EXPORTS_DIR / "flat_messages.json").read_text()
MAPPING_EXPORT_JSON: str = (EXPORTS_DIR / "mapping_graph.json").read_text()
BUNDLED_EXPORT_JSON: str = (EXPORTS_DIR / "conversations.json").read_text()

FLAT_EXPORT: dict = json.loads(FLAT_EXPORT_JSON)
MAPPING_EXPORT: dict = json.loads(MAPPING_EXPORT_JSON)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(17)


@pytest.fixture()
def export_archive() -> bytes:
    """A realistic mixed export: both conversation shapes plus attachments."""
    return build_archive(
        {
            "flat_messages.json": FLAT_EXPORT_JSON,
            "mapping_graph.json": MAPPING_EXPORT_JSON,
            "images/": b"",
            "images/pic.png": PNG_BYTES,
            "files/notes.txt": "some notes",
            "__MACOSX/images/._pic.png": b"\x00\x05\x16\x07",
            ".DS_Store": b"\x00\x00\x00\x01Bud1",
            "user.json/": b"",
        }
    )
