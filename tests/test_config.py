import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from pydantic import ValidationError

from media_indexer.config import LibraryKind, Settings, find_config

CONFIG = """
libraries:
  - name: Music
    kind: music
    section_id: 1
    locations:
      - id: 1
        path: {root}/Music
      - id: 2
        path: {root}/Music/Archive
  - name: Photos
    kind: photos
    section_id: 2
    locations:
      - id: 3
        path: {root}/Photos
scanner:
  exclude_patterns: ["*.part"]
  disabled_resolvers: [music_artist]
  resolver_priorities:
    photo_album: 5
watch:
  worker_concurrency: 4
"""


class TestSettings(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name).resolve()
        self.config_path = self.root / "config.yaml"
        self.config_path.write_text(CONFIG.format(root=self.root), encoding="utf-8")

    def test_load_yaml(self) -> None:
        settings = Settings.load(self.config_path)

        self.assertEqual([lib.name for lib in settings.libraries], ["Music", "Photos"])
        self.assertEqual(settings.libraries[0].kind, LibraryKind.MUSIC)
        self.assertEqual(settings.scanner.exclude_patterns, ["*.part"])
        self.assertEqual(settings.scanner.disabled_resolvers, ["music_artist"])
        self.assertEqual(settings.scanner.resolver_priorities, {"photo_album": 5})
        self.assertEqual(settings.watch.worker_concurrency, 4)
        self.assertEqual(
            settings.roots,
            [self.root / "Music", self.root / "Music" / "Archive", self.root / "Photos"],
        )

    def test_defaults(self) -> None:
        settings = Settings.model_validate({"libraries": []})
        self.assertEqual(settings.scanner.exclude_patterns, [])
        self.assertEqual(settings.watch.worker_concurrency, 2)

    def test_library_lookup(self) -> None:
        settings = Settings.load(self.config_path)
        self.assertEqual(settings.library("Photos").section_id, 2)
        self.assertIsNone(settings.library("Movies"))

    def test_library_for_picks_deepest_location(self) -> None:
        settings = Settings.load(self.config_path)

        library, location = settings.library_for(self.root / "Music" / "Archive" / "Old")
        self.assertEqual((library.name, location.id), ("Music", 2))

        library, location = settings.library_for(self.root / "Music" / "New")
        self.assertEqual((library.name, location.id), ("Music", 1))

        library, location = settings.library_for(self.root / "Photos")
        self.assertEqual((library.name, location.id), ("Photos", 3))

        self.assertIsNone(settings.library_for(self.root / "Elsewhere"))

    def test_paths_are_expanded(self) -> None:
        settings = Settings.model_validate(
            {
                "libraries": [
                    {
                        "name": "Home",
                        "kind": "music",
                        "section_id": 1,
                        "locations": [{"id": 1, "path": "~/Music"}],
                    }
                ]
            }
        )
        path = settings.libraries[0].locations[0].path
        self.assertTrue(path.is_absolute())
        self.assertNotIn("~", str(path))

    def test_duplicate_library_names_rejected(self) -> None:
        library = {"name": "Music", "kind": "music", "section_id": 1, "locations": []}
        with self.assertRaises(ValidationError):
            Settings.model_validate({"libraries": [library, dict(library, section_id=2)]})

    def test_unknown_kind_rejected(self) -> None:
        library = {"name": "X", "kind": "vinyl", "section_id": 1, "locations": []}
        with self.assertRaises(ValidationError):
            Settings.model_validate({"libraries": [library]})

    def test_worker_concurrency_must_be_positive(self) -> None:
        with self.assertRaises(ValidationError):
            Settings.model_validate({"libraries": [], "watch": {"worker_concurrency": 0}})


class TestFindConfig(unittest.TestCase):
    def test_explicit_path_wins(self) -> None:
        self.assertEqual(find_config(Path("/etc/custom.yaml")), Path("/etc/custom.yaml"))

    def test_searches_working_directory(self) -> None:
        with TemporaryDirectory() as tmp:
            previous = os.getcwd()
            os.chdir(tmp)
            try:
                with self.assertRaises(FileNotFoundError):
                    find_config(None)
                Path(tmp, "config.yml").write_text("libraries: []\n", encoding="utf-8")
                self.assertEqual(find_config(None).name, "config.yml")
            finally:
                os.chdir(previous)


if __name__ == "__main__":
    unittest.main()
