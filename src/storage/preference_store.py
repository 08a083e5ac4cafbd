# src/storage/preference_store.py

"""File-backed store for per-user filter preferences and favorites."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("feedrank.storage")

_SAFE_ID_RE = re.compile(r"[^A-Za-z0-9_.-]")


class PreferenceStore:
    """Keeps one JSON blob per user: ``{"prefs": {...}, "favorites": [...]}``.

    The blob is opaque here.  Only :meth:`QueryContext.from_preferences`
    interprets the filter fields, and unknown keys are written back
    untouched.
    """

    def __init__(self, prefs_dir: Path | None = None) -> None:
        self.prefs_dir: Path = prefs_dir or Settings.PREFS_DIR
        self.prefs_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("PreferenceStore initialised, prefs_dir=%s", self.prefs_dir)

    def _path(self, user_id: str) -> Path:
        safe = _SAFE_ID_RE.sub("_", user_id.strip()) or "anonymous"
        return self.prefs_dir / f"{safe}.json"

    def _read(self, user_id: str) -> dict[str, Any]:
        path = self._path(user_id)
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                blob = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable preference file %s: %s", path, exc)
            return {}
        return blob if isinstance(blob, dict) else {}

    def _write(self, user_id: str, blob: dict[str, Any]) -> Path:
        path = self._path(user_id)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(blob, f, ensure_ascii=False, indent=2)
        return path

    def load_prefs(self, user_id: str) -> dict[str, Any]:
        """Return the stored preference blob (empty when none)."""
        prefs = self._read(user_id).get("prefs")
        return prefs if isinstance(prefs, dict) else {}

    def save_prefs(self, user_id: str, prefs: dict[str, Any]) -> Path:
        """Replace the stored preferences, keeping favorites."""
        blob = self._read(user_id)
        blob["prefs"] = dict(prefs)
        path = self._write(user_id, blob)
        logger.info("Saved preferences for user '%s' to %s", user_id, path)
        return path

    def load_favorites(self, user_id: str) -> list[str]:
        """Return the user's favorite dedup keys in insertion order."""
        favorites = self._read(user_id).get("favorites")
        if not isinstance(favorites, list):
            return []
        return [str(f) for f in favorites]

    def toggle_favorite(self, user_id: str, key: str) -> bool:
        """Add or remove *key*; returns True when it is now a favorite."""
        blob = self._read(user_id)
        favorites = self.load_favorites(user_id)
        if key in favorites:
            favorites.remove(key)
            added = False
        else:
            favorites.append(key)
            added = True
        blob["favorites"] = favorites
        self._write(user_id, blob)
        logger.info(
            "%s favorite '%s' for user '%s'",
            "Added" if added else "Removed",
            key,
            user_id,
        )
        return added
