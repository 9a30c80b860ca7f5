import os
import threading
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from media_indexer.ignore import CoreIgnoreRule, DotIgnoreRule, ExcludePatternIgnoreRule, IgnoreRuleEngine
from media_indexer.scanner import LibraryScanner
from media_indexer.snapshot import FilesystemSnapshot, list_children


def _touch(path: Path, data: bytes = b"x") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


class TestLibraryScanner(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name).resolve()
        self.scanner = LibraryScanner(IgnoreRuleEngine([DotIgnoreRule(), CoreIgnoreRule()]))

    def _scan(self, **kwargs):
        return list(self.scanner.scan_stream(self.root, **kwargs))

    def test_missing_root_yields_nothing(self) -> None:
        with self.assertLogs("media_indexer.scanner", level="WARNING"):
            batches = list(self.scanner.scan_stream(self.root / "missing"))
        self.assertEqual(batches, [])

    def test_one_batch_per_visited_directory(self) -> None:
        _touch(self.root / "Artist" / "Album" / "01 - A.mp3")
        _touch(self.root / "Artist" / "Album" / "CD1" / "01 - B.mp3")
        (self.root / "Empty").mkdir()
        _touch(self.root / "root.mp3")

        batches = self._scan()

        visited = sorted(batch.directory for batch in batches)
        self.assertEqual(
            visited,
            sorted(
                [
                    self.root,
                    self.root / "Artist",
                    self.root / "Artist" / "Album",
                    self.root / "Artist" / "Album" / "CD1",
                    self.root / "Empty",
                ]
            ),
        )
        self.assertEqual(batches[0].directory, self.root)

    def test_batch_count_does_not_depend_on_file_rules(self) -> None:
        _touch(self.root / "Album" / "01.mp3")
        _touch(self.root / "Album" / "CD1" / "01.mp3")
        _touch(self.root / "Other" / "Thumbs.db")
        exclude_all = ExcludePatternIgnoreRule(["*.mp3", "*.db"])

        plain = list(LibraryScanner().scan_stream(self.root))
        filtered = list(LibraryScanner(IgnoreRuleEngine([exclude_all])).scan_stream(self.root))

        self.assertEqual(len(plain), 4)
        self.assertEqual(len(filtered), 4)
        self.assertEqual([len(b.files) for b in filtered], [0, 0, 0, 0])

    def test_batch_lists_files_before_subdirectories(self) -> None:
        _touch(self.root / "b.mp3")
        _touch(self.root / "a.mp3")
        (self.root / "Album").mkdir()

        root_batch = self._scan()[0]

        self.assertEqual([e.name for e in root_batch.entries], ["a.mp3", "b.mp3", "Album"])
        self.assertEqual([e.name for e in root_batch.files], ["a.mp3", "b.mp3"])
        self.assertEqual([e.name for e in root_batch.subdirectories], ["Album"])

    def test_empty_directory_yields_empty_batch(self) -> None:
        (self.root / "Empty").mkdir()
        batches = {batch.directory: batch for batch in self._scan()}
        self.assertEqual(batches[self.root / "Empty"].entries, ())

    def test_directory_with_only_subdirectories_is_still_yielded(self) -> None:
        _touch(self.root / "Artist" / "Album" / "01.mp3")
        batches = {batch.directory: batch for batch in self._scan()}
        artist = batches[self.root / "Artist"]
        self.assertEqual(artist.files, [])
        self.assertEqual([e.name for e in artist.subdirectories], ["Album"])

    def test_ignored_directory_subtree_is_pruned(self) -> None:
        _touch(self.root / "Album" / "@eaDir" / "nested" / "thumb.jpg")
        _touch(self.root / "Album" / "01.mp3")

        batches = self._scan()

        visited = {batch.directory for batch in batches}
        self.assertNotIn(self.root / "Album" / "@eaDir", visited)
        self.assertNotIn(self.root / "Album" / "@eaDir" / "nested", visited)
        self.assertEqual(len(batches), 2)

    def test_empty_dot_ignore_marker_prunes_directory(self) -> None:
        _touch(self.root / "Skip" / ".ignore", b"")
        _touch(self.root / "Skip" / "01.mp3")
        _touch(self.root / "Keep" / ".ignore", b"*.tmp\n")
        _touch(self.root / "Keep" / "01.mp3")

        visited = {batch.directory for batch in self._scan()}

        self.assertNotIn(self.root / "Skip", visited)
        self.assertIn(self.root / "Keep", visited)

    def test_ignored_files_are_dropped(self) -> None:
        for name in ("01.mp3", "Thumbs.db", ".DS_Store", ".hidden.mp3", "movie-sample.mkv", "albumart.jpg"):
            _touch(self.root / name)

        root_batch = self._scan()[0]

        self.assertEqual([e.name for e in root_batch.entries], ["01.mp3"])

    def test_file_snapshot_fields(self) -> None:
        _touch(self.root / "01 - Song.FLAC", b"12345")
        (self.root / "Album").mkdir()

        root_batch = self._scan()[0]
        song, album = root_batch.entries

        self.assertEqual(song.path, self.root / "01 - Song.FLAC")
        self.assertEqual(song.extension, ".FLAC")
        self.assertEqual(song.stem, "01 - Song")
        self.assertEqual(song.size_bytes, 5)
        self.assertIsNotNone(song.last_modified_utc.tzinfo)
        self.assertTrue(album.is_directory)
        self.assertEqual(album.extension, "")
        self.assertIsNone(album.size_bytes)

    def _symlink(self, target: Path, link: Path) -> None:
        try:
            os.symlink(target, link, target_is_directory=True)
        except (OSError, NotImplementedError):
            self.skipTest("symlinks unavailable")

    def test_symlinked_disc_folder_matches_single_directory_listing(self) -> None:
        album = self.root / "Artist" / "Album"
        _touch(album / "CD1" / "01 - One.mp3")
        store = TemporaryDirectory()
        self.addCleanup(store.cleanup)
        _touch(Path(store.name) / "CD2" / "01 - Two.mp3")
        self._symlink(Path(store.name) / "CD2", album / "CD2")

        batches = {batch.directory: batch for batch in self._scan()}
        collected = self.scanner.collect_directory(album)

        self.assertEqual([e.name for e in batches[album].entries], ["CD1", "CD2"])
        self.assertEqual(batches[album].entries, collected.entries)
        self.assertEqual([e.name for e in batches[album / "CD2"].entries], ["01 - Two.mp3"])

    def test_directory_reached_twice_is_descended_once(self) -> None:
        _touch(self.root / "Real" / "01.mp3")
        self._symlink(self.root / "Real", self.root / "Link")

        batches = self._scan()

        self.assertEqual([e.name for e in batches[0].subdirectories], ["Link", "Real"])
        self.assertEqual(len(batches), 2)

    def test_symlink_cycle_terminates(self) -> None:
        _touch(self.root / "Album" / "01.mp3")
        self._symlink(self.root, self.root / "Album" / "Loop")

        batches = {batch.directory: batch for batch in self._scan()}

        self.assertEqual(set(batches), {self.root, self.root / "Album"})
        self.assertEqual(
            [e.name for e in batches[self.root / "Album"].entries],
            ["01.mp3", "Loop"],
        )

    def test_unreadable_directory_yields_empty_batch_and_scan_continues(self) -> None:
        _touch(self.root / "Locked" / "01.mp3")
        _touch(self.root / "Open" / "01.mp3")
        real_scandir = os.scandir

        def fake_scandir(path):
            if Path(path).name == "Locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        with mock.patch("media_indexer.scanner.os.scandir", side_effect=fake_scandir):
            with self.assertLogs("media_indexer.scanner", level="WARNING"):
                batches = {batch.directory: batch for batch in self._scan()}

        self.assertEqual(batches[self.root / "Locked"].entries, ())
        self.assertEqual([e.name for e in batches[self.root / "Open"].entries], ["01.mp3"])

    def test_unreadable_file_is_skipped(self) -> None:
        _touch(self.root / "01.mp3")
        _touch(self.root / "02.mp3")
        real_from_entry = FilesystemSnapshot.from_entry

        def flaky_from_entry(entry):
            if entry.name == "01.mp3":
                raise PermissionError(13, "Permission denied", entry.path)
            return real_from_entry(entry)

        with mock.patch.object(FilesystemSnapshot, "from_entry", staticmethod(flaky_from_entry)):
            with self.assertLogs("media_indexer.scanner", level="WARNING"):
                root_batch = self._scan()[0]

        self.assertEqual([e.name for e in root_batch.entries], ["02.mp3"])

    def test_stream_is_lazy(self) -> None:
        _touch(self.root / "A" / "01.mp3")
        _touch(self.root / "B" / "01.mp3")
        real_scandir = os.scandir

        with mock.patch("media_indexer.scanner.os.scandir", side_effect=real_scandir) as scandir:
            stream = self.scanner.scan_stream(self.root)
            self.assertEqual(scandir.call_count, 0)
            first = next(stream)
            self.assertEqual(first.directory, self.root)
            self.assertEqual(scandir.call_count, 1)
            stream.close()

    def test_cancellation_stops_before_next_directory(self) -> None:
        _touch(self.root / "A" / "01.mp3")
        _touch(self.root / "B" / "01.mp3")
        cancel = threading.Event()

        stream = self.scanner.scan_stream(self.root, cancel)
        first = next(stream)
        cancel.set()
        rest = list(stream)

        self.assertEqual(first.directory, self.root)
        self.assertEqual(len(first.entries), 2)
        self.assertEqual(rest, [])

    def test_cancelled_before_start_yields_nothing(self) -> None:
        _touch(self.root / "01.mp3")
        cancel = threading.Event()
        cancel.set()
        self.assertEqual(self._scan(cancel=cancel), [])


class TestCollectDirectory(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name).resolve()
        self.scanner = LibraryScanner(IgnoreRuleEngine([CoreIgnoreRule()]))

    def test_single_directory_without_descending(self) -> None:
        _touch(self.root / "Album" / "01.mp3")
        _touch(self.root / "Album" / "Thumbs.db")
        _touch(self.root / "Album" / "CD1" / "01.mp3")

        batch = self.scanner.collect_directory(self.root / "Album")

        self.assertEqual(batch.directory, self.root / "Album")
        self.assertEqual([e.name for e in batch.entries], ["01.mp3", "CD1"])

    def test_missing_or_ignored_directory(self) -> None:
        (self.root / "@eaDir").mkdir()
        self.assertIsNone(self.scanner.collect_directory(self.root / "missing"))
        self.assertIsNone(self.scanner.collect_directory(self.root / "@eaDir"))


class TestListChildren(unittest.TestCase):
    def test_sorted_listing_and_missing_directory(self) -> None:
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            _touch(root / "b.mp3")
            (root / "A").mkdir()
            self.assertEqual([c.name for c in list_children(root)], ["A", "b.mp3"])
            self.assertEqual(list_children(root / "missing"), [])


if __name__ == "__main__":
    unittest.main()
