"""Tests for snapshot collection and merging."""

from __future__ import annotations

from pathlib import Path

import pytest

from weaverbird.files import collect_files, merge_file_snapshots
from weaverbird.types import FileMetadata, files_from_payload


class TestCollectFiles:
    def test_collects_recursively(self, tmp_path: Path) -> None:
        root = tmp_path / "mock-data"
        (root / "nested" / "deep").mkdir(parents=True)
        (root / "top.txt").write_text("top")
        (root / "nested" / "deep" / "leaf.py").write_text("leaf")

        files = collect_files(root)

        assert files == [
            FileMetadata("mock-data/nested/deep/leaf.py", "leaf"),
            FileMetadata("mock-data/top.txt", "top"),
        ]

    def test_relative_to(self, tmp_path: Path) -> None:
        root = tmp_path / "data"
        root.mkdir()
        (root / "a.txt").write_text("a")

        assert collect_files(root, relative_to=root) == [FileMetadata("a.txt", "a")]

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            collect_files(tmp_path / "nope")

    def test_not_a_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(NotADirectoryError):
            collect_files(path)


class TestMergeFileSnapshots:
    def test_generated_wins_and_comes_first(self) -> None:
        originals = [
            FileMetadata("a.py", "old a"),
            FileMetadata("b.py", "old b"),
            FileMetadata("c.py", "old c"),
        ]
        generated = [FileMetadata("c.py", "new c"), FileMetadata("d.py", "new d")]

        merged = merge_file_snapshots(generated, originals)

        assert merged == [
            FileMetadata("c.py", "new c"),
            FileMetadata("d.py", "new d"),
            FileMetadata("a.py", "old a"),
            FileMetadata("b.py", "old b"),
        ]

    def test_one_entry_per_path(self) -> None:
        originals = [FileMetadata("a", "1"), FileMetadata("b", "2")]
        generated = [FileMetadata("b", "3"), FileMetadata("c", "4")]

        merged = merge_file_snapshots(generated, originals)

        paths = [f.file_path for f in merged]
        assert sorted(paths) == ["a", "b", "c"]
        assert len(paths) == len(set(paths))
        assert merge_file_snapshots(merged, originals) == merged

    def test_empty_generated(self) -> None:
        originals = [FileMetadata("a", "1")]
        assert merge_file_snapshots([], originals) == originals


class TestFilePayloads:
    def test_files_from_payload_skips_malformed(self) -> None:
        items = [{"filePath": "a", "fileContent": "1"}, "junk", {"filePath": "b"}]
        assert files_from_payload(items) == [FileMetadata("a", "1"), FileMetadata("b", "")]

    def test_files_from_payload_not_a_list(self) -> None:
        assert files_from_payload(None) == []

    def test_null_content_is_empty(self) -> None:
        item = {"filePath": "a", "fileContent": None}
        assert FileMetadata.from_payload(item) == FileMetadata("a", "")

    def test_files_from_payload_skips_null_path(self) -> None:
        items = [{"filePath": None, "fileContent": "x"}, {"filePath": "b", "fileContent": None}]
        assert files_from_payload(items) == [FileMetadata("b", "")]
