"""Parser settings.

Reads an optional TOML file and provides a typed :class:`ParserSettings`
dataclass.  Default location: ``~/.config/chat-archive/config.toml``.
Override with the ``CHAT_ARCHIVE_CONFIG`` environment variable.

Example::

    [parser]
    max_workers = 4
    untitled_title = "Untitled Conversation"
    attachment_extensions = [".pdf", ".png"]
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from chat_archive.core.types import UNTITLED_CONVERSATION

_DEFAULT_CONFIG_DIR = Path("~/.config/chat-archive").expanduser()

DOCUMENT_EXTENSIONS: frozenset[str] = frozenset({".json"})

ATTACHMENT_EXTENSIONS: frozenset[str] = frozenset(
    {
        # documents
        ".pdf",
        ".doc",
        ".docx",
        ".txt",
        ".md",
        # images
        ".jpg",
        ".jpeg",
        ".png",
        ".gif",
        ".webp",
        # video / audio
        ".mp4",
        ".mov",
        ".avi",
        ".mp3",
        ".wav",
        # archives / spreadsheets
        ".zip",
        ".tar",
        ".gz",
        ".csv",
        ".xlsx",
    }
)

SYSTEM_MARKERS: frozenset[str] = frozenset({"__macosx"})


def _config_path() -> Path:
    env = os.environ.get("CHAT_ARCHIVE_CONFIG")
    if env:
        return Path(env).expanduser()
    return _DEFAULT_CONFIG_DIR / "config.toml"


def _normalize_extensions(values: list[str]) -> frozenset[str]:
    return frozenset(
        v.lower() if v.startswith(".") else f".{v.lower()}" for v in values if v
    )


@dataclass(frozen=True)
class ParserSettings:
    document_extensions: frozenset[str] = DOCUMENT_EXTENSIONS
    attachment_extensions: frozenset[str] = ATTACHMENT_EXTENSIONS
    system_markers: frozenset[str] = SYSTEM_MARKERS
    hidden_prefix: str = "."
    untitled_title: str = UNTITLED_CONVERSATION

    # 1 keeps per-entry work on the calling thread
    max_workers: int = 1

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


DEFAULT_SETTINGS = ParserSettings()


def load_settings(path: Path | None = None) -> ParserSettings:
    """Load settings from disk, falling back to defaults + env overrides."""
    path = path or _config_path()
    values: dict[str, object] = {}

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        section = data.get("parser", {})

        for key in ("document_extensions", "attachment_extensions"):
            if key in section:
                values[key] = _normalize_extensions(section[key])
        if "system_markers" in section:
            values["system_markers"] = frozenset(
                m.lower() for m in section["system_markers"]
            )
        if "hidden_prefix" in section:
            values["hidden_prefix"] = section["hidden_prefix"]
        if "untitled_title" in section:
            values["untitled_title"] = section["untitled_title"]
        if "max_workers" in section:
            values["max_workers"] = int(section["max_workers"])

    # Environment variables always take precedence
    if workers := os.environ.get("CHAT_ARCHIVE_MAX_WORKERS"):
        values["max_workers"] = int(workers)
    if title := os.environ.get("CHAT_ARCHIVE_UNTITLED"):
        values["untitled_title"] = title

    return ParserSettings(**values)  # type: ignore[arg-type]
