"""Collect file snapshots from a directory tree."""

from __future__ import annotations

import os
from collections.abc import Iterable
from pathlib import Path

from weaverbird.types import FileMetadata


def collect_files(
    directory: str | os.PathLike[str],
    relative_to: str | os.PathLike[str] | None = None,
) -> list[FileMetadata]:
    """Read every regular file under ``directory``.

    Paths are reported relative to ``relative_to`` (default: the parent of
    ``directory``, so the directory name stays as the first path segment)
    with ``/`` separators, in sorted order.

    Raises:
        FileNotFoundError: If ``directory`` does not exist.
        NotADirectoryError: If ``directory`` is not a directory.
        OSError: If a file cannot be read.
    """
    root = Path(directory)
    if not root.exists():
        raise FileNotFoundError(str(root))
    if not root.is_dir():
        raise NotADirectoryError(str(root))

    base = Path(relative_to) if relative_to is not None else root.parent
    files: list[FileMetadata] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        content = path.read_text(encoding="utf-8", errors="replace")
        files.append(
            FileMetadata(file_path=path.relative_to(base).as_posix(), file_content=content)
        )
    return files


def merge_file_snapshots(
    generated: Iterable[FileMetadata], originals: Iterable[FileMetadata]
) -> list[FileMetadata]:
    """Overlay generated files on an original snapshot.

    One entry per distinct path. Generated files come first in their own
    order and win on shared paths; originals follow in their order.
    """
    merged: list[FileMetadata] = []
    seen: set[str] = set()
    for f in [*generated, *originals]:
        if f.file_path in seen:
            continue
        seen.add(f.file_path)
        merged.append(f)
    return merged
