"""JSON cache index storage implementation."""

import json
import logging
from pathlib import Path

from .models import CacheEntry

logger = logging.getLogger(__name__)


class CacheStorage:
    """JSON-document storage for cache entry metadata.

    The whole index is a single object mapping fingerprint to entry, while
    audio files are stored separately on the filesystem. The index is read
    lazily on first access and written back synchronously after every
    mutation. There is no cross-process locking; concurrent writers sharing
    a directory can lose each other's updates.
    """

    def __init__(self, index_path: Path):
        """Initialize cache storage for the given index document.

        Args:
            index_path: Location of the JSON index document
        """
        self.index_path = Path(index_path)
        self._entries: dict[str, CacheEntry] | None = None

    @property
    def entries(self) -> dict[str, CacheEntry]:
        if self._entries is None:
            self._entries = self._load()
        return self._entries

    def get(self, fingerprint: str) -> CacheEntry | None:
        return self.entries.get(fingerprint)

    def save(self, entry: CacheEntry) -> None:
        """Insert or overwrite an entry and persist the index.

        Raises:
            OSError: If the index cannot be written
        """
        self.entries[entry.fingerprint] = entry
        self.flush()

    def delete(self, fingerprint: str) -> bool:
        """Remove an entry and persist the index.

        Returns:
            True if an entry was removed
        """
        if self.entries.pop(fingerprint, None) is None:
            return False
        self.flush()
        return True

    def clear(self) -> None:
        self._entries = {}
        self.flush()

    def flush(self) -> None:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        document = {key: entry.to_dict() for key, entry in self.entries.items()}
        self.index_path.write_text(json.dumps(document, indent=2), encoding="utf-8")

    def _load(self) -> dict[str, CacheEntry]:
        if not self.index_path.exists():
            return {}

        try:
            document = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Cache index {self.index_path} unreadable, starting empty: {e}")
            return {}

        if not isinstance(document, dict):
            logger.warning(f"Cache index {self.index_path} is not an object, starting empty")
            return {}

        entries: dict[str, CacheEntry] = {}
        for key, record in document.items():
            try:
                entry = CacheEntry.from_dict(record)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed cache record {key}: {e}")
                continue
            entries[key] = entry

        return entries
