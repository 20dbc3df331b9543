"""Materialize generated files into the virtual filesystem."""

from __future__ import annotations

from collections.abc import Iterable

from weaverbird.types import FileMetadata, Interaction
from weaverbird.vfs import VirtualFileSystem, VirtualMemoryFile, make_uri

CHANGES_DONE_MESSAGE = "Changes to files done. Please review:"


def create_changes(fs: VirtualFileSystem, new_files: Iterable[FileMetadata]) -> list[Interaction]:
    """Register every file in ``fs`` and summarize the touched paths.

    Registration is per file with no rollback: if one registration fails,
    the files before it stay registered.

    Returns:
        A confirmation message followed by a codegen listing of all paths.
    """
    file_paths: list[str] = []
    for new_file in new_files:
        contents = new_file.file_content.encode("utf-8")
        fs.register_provider(make_uri(new_file.file_path), VirtualMemoryFile(contents))
        file_paths.append(new_file.file_path)

    return [
        Interaction.ai_message(CHANGES_DONE_MESSAGE),
        Interaction.codegen_summary(file_paths),
    ]
