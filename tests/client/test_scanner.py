"""Tests for the tree scanner."""

import os
import sys
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tachosync.client.sync.archive import ArchiveExpander
from tachosync.client.sync.removal import RemovalPolicy
from tachosync.client.sync.scanner import TreeScanner
from tachosync.client.sync.types import MAX_SCAN_DEPTH, ExpandResult

MakeZip = Callable[[Path, dict[str, bytes]], Path]
CorruptZip = Callable[[Path, bytes, bytes], Path]


def make_scanner(root: Path, **kwargs: object) -> TreeScanner:
    """Create a scanner that expands archives and deletes permanently."""
    return TreeScanner(root, ArchiveExpander(root, RemovalPolicy.PERMANENT), **kwargs)  # type: ignore[arg-type]


def scan_names(scanner: TreeScanner) -> list[str]:
    """Relative paths of everything a scan yields."""
    return [found.relative_path for found in scanner.scan()]


class CountingScanner(TreeScanner):
    """Scanner recording every directory it lists."""

    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self.listed: list[Path] = []

    def _list(self, directory: Path) -> list[os.DirEntry[str]]:
        self.listed.append(directory)
        return super()._list(directory)


class TestDiscovery:
    """Tests for plain file discovery."""

    def test_finds_data_files(self, root: Path) -> None:
        """Should yield .ddd and .esm files at any level."""
        (root / "a.ddd").write_bytes(b"x")
        (root / "sub").mkdir()
        (root / "sub" / "b.esm").write_bytes(b"x")
        (root / "notes.txt").write_bytes(b"x")

        assert scan_names(make_scanner(root)) == ["a.ddd", "sub/b.esm"]

    def test_extension_is_case_insensitive(self, root: Path) -> None:
        """Should accept upper-case extensions."""
        (root / "A.DDD").write_bytes(b"x")
        (root / "B.Esm").write_bytes(b"x")

        assert scan_names(make_scanner(root)) == ["A.DDD", "B.Esm"]

    def test_yields_absolute_resolved_paths(self, root: Path) -> None:
        """DiscoveredFile.path should be absolute and under the resolved root."""
        (root / "a.ddd").write_bytes(b"x")

        found = list(make_scanner(root).scan())

        assert found[0].path == root.resolve() / "a.ddd"
        assert found[0].name == "a.ddd"

    def test_sorted_depth_first_order(self, root: Path) -> None:
        """Should walk entries in name order, depth first."""
        (root / "b").mkdir()
        (root / "b" / "2.ddd").write_bytes(b"x")
        (root / "a.ddd").write_bytes(b"x")
        (root / "c.ddd").write_bytes(b"x")

        assert scan_names(make_scanner(root)) == ["a.ddd", "b/2.ddd", "c.ddd"]

    @pytest.mark.parametrize("name", ["Archived", "Failed", "archived", "FAILED"])
    def test_skips_output_folders_at_root(self, root: Path, name: str) -> None:
        """Output folders at depth 0 should be skipped, any case."""
        (root / name).mkdir()
        (root / name / "done.ddd").write_bytes(b"x")

        assert scan_names(make_scanner(root)) == []

    def test_output_names_below_root_are_scanned(self, root: Path) -> None:
        """Only depth 0 output folders are skipped."""
        (root / "sub" / "Archived").mkdir(parents=True)
        (root / "sub" / "Archived" / "x.ddd").write_bytes(b"x")

        assert scan_names(make_scanner(root)) == ["sub/Archived/x.ddd"]

    def test_idempotent_on_unchanged_tree(self, root: Path) -> None:
        """Two scans of an unchanged tree should yield the same files."""
        (root / "a.ddd").write_bytes(b"x")
        (root / "sub" / "deep").mkdir(parents=True)
        (root / "sub" / "deep" / "b.esm").write_bytes(b"x")
        scanner = make_scanner(root)

        assert scan_names(scanner) == scan_names(scanner)

    def test_scan_is_lazy(self, root: Path) -> None:
        """Nothing should be walked before iteration starts."""
        expander = MagicMock()
        scanner = TreeScanner(root, expander)
        (root / "a.zip").write_bytes(b"x")

        scanner.scan()

        expander.expand.assert_not_called()


class TestDepthCap:
    """Tests for the depth bound."""

    def nest(self, root: Path, levels: int) -> Path:
        """Create `levels` nested directories and return the deepest."""
        path = root
        for i in range(levels):
            path = path / f"d{i}"
        path.mkdir(parents=True)
        return path

    def test_default_cap(self) -> None:
        """The default cap should be 10 levels."""
        assert MAX_SCAN_DEPTH == 10

    def test_depth_ten_is_scanned(self, root: Path) -> None:
        """A file in the 10th nested directory should be found."""
        (self.nest(root, 10) / "deep.ddd").write_bytes(b"x")

        assert len(scan_names(make_scanner(root))) == 1

    def test_depth_eleven_is_excluded(self, root: Path) -> None:
        """A file one level beyond the cap should not be found."""
        deepest = self.nest(root, 11)
        (deepest / "too-deep.ddd").write_bytes(b"x")
        (deepest.parent / "ok.ddd").write_bytes(b"x")

        names = scan_names(make_scanner(root))

        assert [Path(n).name for n in names] == ["ok.ddd"]

    def test_custom_cap(self, root: Path) -> None:
        """max_depth should bound the walk."""
        (root / "a").mkdir()
        (root / "a" / "x.ddd").write_bytes(b"x")
        (root / "top.ddd").write_bytes(b"x")

        assert scan_names(make_scanner(root, max_depth=0)) == ["top.ddd"]


class TestArchives:
    """Tests for archive expansion during the walk."""

    def test_zip_is_expanded_and_yielded_once(self, root: Path, make_zip: MakeZip) -> None:
        """A zip's data file should be yielded exactly once and the zip removed."""
        make_zip(root / "batch.zip", {"card.ddd": b"CARD"})

        names = scan_names(make_scanner(root))

        assert names == ["card.ddd"]
        assert not (root / "batch.zip").exists()
        assert not (root / "Failed").exists()
        assert not (root / "Archived").exists()

    def test_nested_zip(self, root: Path, make_zip: MakeZip, tmp_path: Path) -> None:
        """A zip inside a zip should be expanded too."""
        inner = make_zip(tmp_path / "inner.zip", {"vu.esm": b"VU"})
        make_zip(root / "outer.zip", {"inner.zip": inner.read_bytes(), "card.ddd": b"CARD"})

        names = scan_names(make_scanner(root))

        assert sorted(names) == ["card.ddd", "vu.esm"]
        assert sorted(p.name for p in root.iterdir()) == ["card.ddd", "vu.esm"]

    def test_zip_with_folder_structure(self, root: Path, make_zip: MakeZip) -> None:
        """Extracted subdirectories should be walked one level deeper."""
        make_zip(root / "sub" / "batch.zip", {"delivery/card.ddd": b"CARD"})

        assert scan_names(make_scanner(root)) == ["sub/delivery/card.ddd"]

    def test_rescan_does_not_duplicate_siblings(self, root: Path, make_zip: MakeZip) -> None:
        """Files already yielded before the zip should not be yielded again."""
        (root / "a.ddd").write_bytes(b"x")
        make_zip(root / "b.zip", {"c.ddd": b"C"})

        names = scan_names(make_scanner(root))

        assert sorted(names) == ["a.ddd", "c.ddd"]
        assert len(names) == 2

    def test_sibling_subtree_walked_once(self, root: Path, make_zip: MakeZip) -> None:
        """Several archives in one directory should not re-walk later subdirectories."""
        make_zip(root / "a.zip", {"a.ddd": b"A"})
        make_zip(root / "b.zip", {"b.ddd": b"B"})
        (root / "z").mkdir()
        (root / "z" / "card.ddd").write_bytes(b"C")
        scanner = CountingScanner(root, ArchiveExpander(root, RemovalPolicy.PERMANENT))

        names = scan_names(scanner)

        assert names == ["a.ddd", "b.ddd", "z/card.ddd"]
        assert scanner.listed.count(scanner.root / "z") == 1
        assert scanner.listed.count(scanner.root) == 3

    def test_failed_zip_is_quarantined(
        self,
        root: Path,
        make_zip: MakeZip,
        corrupt_zip: CorruptZip,
    ) -> None:
        """A zip failing mid-extraction should leave no residue and end up in Failed."""
        sub = root / "sub"
        archive = make_zip(sub / "batch.zip", {"a.ddd": b"FIRST-PAYLOAD", "b.ddd": b"SECOND-PAYLOAD"})
        corrupt_zip(archive, b"SECOND-PAYLOAD", b"SECOND-PAYLOAX")
        (sub / "z.ddd").write_bytes(b"x")

        names = scan_names(make_scanner(root))

        assert names == ["sub/z.ddd"]
        assert sorted(p.name for p in sub.iterdir()) == ["z.ddd"]
        assert sorted(p.name for p in (root / "Failed").iterdir()) == ["batch.zip"]

    def test_quarantined_zip_is_not_rescanned(self, root: Path) -> None:
        """The Failed folder should not be walked by the next scan."""
        (root / "broken.zip").write_bytes(b"not a zip")
        scanner = make_scanner(root)

        assert scan_names(scanner) == []
        assert scan_names(scanner) == []
        assert (root / "Failed" / "broken.zip").exists()

    def test_archive_expanded_once_per_scan(self, root: Path) -> None:
        """An archive that cannot be removed should not loop the walk."""
        (root / "stuck.zip").write_bytes(b"x")
        expander = MagicMock()
        expander.expand.return_value = ExpandResult(archive=root / "stuck.zip", success=True)

        names = scan_names(TreeScanner(root, expander))

        assert names == []
        assert expander.expand.call_count == 1

    def test_on_expand_callback(self, root: Path, make_zip: MakeZip) -> None:
        """on_expand should receive every expansion result."""
        make_zip(root / "batch.zip", {"card.ddd": b"CARD"})
        results: list[ExpandResult] = []

        list(make_scanner(root, on_expand=results.append).scan())

        assert len(results) == 1
        assert results[0].success

    def test_without_expander_archives_are_left(self, root: Path, make_zip: MakeZip) -> None:
        """Without an expander archives should be ignored."""
        make_zip(root / "batch.zip", {"card.ddd": b"CARD"})

        assert scan_names(TreeScanner(root)) == []
        assert (root / "batch.zip").exists()


class TestErrors:
    """Tests for unreadable and unusual entries."""

    @pytest.mark.skipif(
        sys.platform == "win32" or (hasattr(os, "geteuid") and os.geteuid() == 0),
        reason="permissions are not enforced",
    )
    def test_unreadable_directory_is_skipped(self, root: Path) -> None:
        """An unreadable directory should yield nothing but not stop the scan."""
        locked = root / "locked"
        locked.mkdir()
        (locked / "x.ddd").write_bytes(b"x")
        (root / "z.ddd").write_bytes(b"x")
        locked.chmod(0)
        try:
            assert scan_names(make_scanner(root)) == ["z.ddd"]
        finally:
            locked.chmod(0o755)

    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        """A missing root should be logged and yield nothing."""
        assert scan_names(make_scanner(tmp_path / "missing")) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")
    def test_symlinks_are_skipped(self, tmp_path: Path, root: Path) -> None:
        """Symlinked files and directories should be neither yielded nor walked."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "o.ddd").write_bytes(b"x")
        os.symlink(outside, root / "linkdir")
        os.symlink(outside / "o.ddd", root / "link.ddd")

        assert scan_names(make_scanner(root)) == []
