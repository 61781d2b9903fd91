from chat_archive.testing.archive_kit import ArchiveParserTestKit, build_archive

__all__ = ["ArchiveParserTestKit", "build_archive"]
