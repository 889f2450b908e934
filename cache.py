import json
import logging
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from models import PersistedEntry


logger = logging.getLogger(__name__)


class CacheManager:
    """Manages the on-disk cache of resolved album image URLs"""

    def __init__(self, cache_dir: str = "cache"):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        # In-memory copy of the last snapshot read or written
        self._entries: Optional[List[PersistedEntry]] = None

        self.images_file = self.cache_dir / "album_images.json"

    def load(self) -> List[PersistedEntry]:
        """Load the image snapshot from disk, with fallback to empty if missing or corrupt"""
        if self._entries is not None:
            return list(self._entries)

        self._entries = []
        if not self.images_file.exists():
            return []

        try:
            with open(self.images_file, 'r') as f:
                raw_entries = json.load(f)
            self._entries = [PersistedEntry(**entry) for entry in raw_entries]
        except (json.JSONDecodeError, TypeError, ValidationError, OSError):
            logger.exception("Could not read %s, starting with an empty cache", self.images_file)
            self._entries = []

        return list(self._entries)

    def save(self, entries: List[PersistedEntry]):
        """Replace the snapshot on disk"""
        data = [entry.model_dump() for entry in entries]
        tmp_file = self.images_file.with_suffix(".tmp")
        with open(tmp_file, 'w') as f:
            json.dump(data, f)
        tmp_file.replace(self.images_file)
        self._entries = list(entries)
        logger.debug("Saved %d album images to %s", len(entries), self.images_file)
