# tests/test_preference_store.py

"""Tests for the per-user preference and favorites store."""

import json
import tempfile
import unittest
from pathlib import Path

from src.storage.preference_store import PreferenceStore


class TestPreferenceStore(unittest.TestCase):
    """PreferenceStore tests against a temporary directory."""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.prefs_dir = Path(self._tmpdir.name) / "prefs"
        self.store = PreferenceStore(prefs_dir=self.prefs_dir)

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_creates_directory(self) -> None:
        self.assertTrue(self.prefs_dir.is_dir())

    def test_unknown_user_is_empty(self) -> None:
        self.assertEqual(self.store.load_prefs("nobody"), {})
        self.assertEqual(self.store.load_favorites("nobody"), [])

    def test_save_and_load_round_trip(self) -> None:
        prefs = {"gender": "Female", "palette": "cool-winter", "extra": 1}
        self.store.save_prefs("ana", prefs)
        self.assertEqual(self.store.load_prefs("ana"), prefs)

    def test_save_keeps_favorites(self) -> None:
        self.store.toggle_favorite("ana", "sk-1001")
        self.store.save_prefs("ana", {"body": "pear"})
        self.assertEqual(self.store.load_favorites("ana"), ["sk-1001"])

    def test_toggle_favorite(self) -> None:
        self.assertTrue(self.store.toggle_favorite("ana", "a"))
        self.assertTrue(self.store.toggle_favorite("ana", "b"))
        self.assertFalse(self.store.toggle_favorite("ana", "a"))
        self.assertEqual(self.store.load_favorites("ana"), ["b"])

    def test_toggle_keeps_prefs(self) -> None:
        self.store.save_prefs("ana", {"body": "pear"})
        self.store.toggle_favorite("ana", "a")
        self.assertEqual(self.store.load_prefs("ana"), {"body": "pear"})

    def test_user_id_sanitised(self) -> None:
        """Path separators never escape the preference directory."""
        self.store.save_prefs("../evil/user", {"body": "pear"})
        files = list(self.prefs_dir.iterdir())
        self.assertEqual(len(files), 1)
        self.assertEqual(files[0].parent, self.prefs_dir)
        self.assertEqual(self.store.load_prefs("../evil/user"), {"body": "pear"})

    def test_corrupt_file_reads_as_empty(self) -> None:
        (self.prefs_dir / "ana.json").write_text("{not json", encoding="utf-8")
        self.assertEqual(self.store.load_prefs("ana"), {})

    def test_file_layout(self) -> None:
        self.store.save_prefs("ana", {"palette": "soft-summer"})
        self.store.toggle_favorite("ana", "x")
        with open(self.prefs_dir / "ana.json", encoding="utf-8") as f:
            blob = json.load(f)
        self.assertEqual(
            blob, {"prefs": {"palette": "soft-summer"}, "favorites": ["x"]}
        )


if __name__ == "__main__":
    unittest.main()
