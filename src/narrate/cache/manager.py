"""Content-addressed audio cache manager.

Maps a fingerprint of the exact request text to a previously generated
audio file so identical narration is never paid for twice.
"""

import hashlib
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from .models import CacheEntry, CacheValidity
from .storage import CacheStorage

logger = logging.getLogger(__name__)


def fingerprint(text: str) -> str:
    """Deterministic SHA-256 hex digest of the exact text.

    Args:
        text: Request text, hashed as UTF-8 without normalization

    Returns:
        64-character lowercase hex string
    """
    if text is None:
        raise ValueError("text must be non-None")
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class ArtifactCache:
    """Audio cache with TTL expiry over a JSON index.

    Example:
        cache = ArtifactCache(Path("~/.cache/narrate/audio").expanduser())

        key = fingerprint("Deploy complete")
        entry = cache.lookup(key)
        if entry is None:
            output = await synthesizer.synthesize("Deploy complete", cache.artifact_path(key))
            cache.store(key, CacheEntry(...))
    """

    def __init__(
        self,
        cache_dir: Path,
        ttl: timedelta = timedelta(days=30),
        index_path: Path | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the cache.

        Args:
            cache_dir: Directory holding audio files (created if missing)
            ttl: Maximum entry age
            index_path: Index document location (defaults to cache_dir/index.json)
            clock: Source of the current time
        """
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}")

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.ttl = ttl
        self.storage = CacheStorage(index_path or self.cache_dir / "index.json")
        self._clock = clock

        logger.debug(f"ArtifactCache at {self.cache_dir} with ttl {ttl}")

    def artifact_path(self, key: str, output_name: str | None = None) -> Path:
        """Where the audio for ``key`` should be written.

        An explicit output name is reduced to its final component so it
        cannot escape the cache directory.
        """
        if output_name:
            name = Path(output_name).name
            if name not in ("", ".", ".."):
                return self.cache_dir / name
        return self.cache_dir / f"{key}.mp3"

    def lookup(self, key: str) -> CacheEntry | None:
        """Return a valid entry or None.

        Entries whose file is gone or whose age reached the TTL are evicted
        from the index as part of the lookup.
        """
        entry = self.storage.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {key[:12]}")
            return None

        validity = entry.validity(self.ttl, self._clock())
        if validity is CacheValidity.VALID:
            logger.debug(f"Cache hit: {key[:12]} -> {entry.artifact_path}")
            return entry

        if validity is CacheValidity.MISSING_FILE:
            logger.warning(
                f"Cache corruption: metadata exists but audio file missing: {entry.artifact_path}"
            )
        else:
            logger.info(f"Cache entry {key[:12]} expired (created {entry.created_at.isoformat()})")

        self.storage.delete(key)
        return None

    def store(self, key: str, entry: CacheEntry) -> None:
        """Insert or overwrite the entry for ``key`` and persist immediately.

        Other entries pointing at the same file are dropped, since the new
        audio has replaced theirs.
        """
        if entry.fingerprint != key:
            raise ValueError(
                f"entry fingerprint {entry.fingerprint} does not match key {key}"
            )
        for other_key, other in list(self.storage.entries.items()):
            if other_key != key and other.artifact_path == entry.artifact_path:
                logger.info(
                    f"Cache entry {other_key[:12]} superseded: {entry.artifact_path} overwritten"
                )
                del self.storage.entries[other_key]
        self.storage.save(entry)
        logger.debug(f"Cached {entry.artifact_path} under {key[:12]}")

    def clear(self) -> int:
        """Delete every cached audio file and empty the index.

        Returns:
            Number of index entries removed
        """
        entries = list(self.storage.entries.values())
        for entry in entries:
            try:
                entry.artifact_path.unlink()
            except FileNotFoundError:
                logger.warning(f"Cached audio already gone: {entry.artifact_path}")
            except OSError as e:
                logger.warning(f"Failed to delete cached audio {entry.artifact_path}: {e}")

        self.storage.clear()
        logger.info(f"Cache cleared: {len(entries)} entries removed")
        return len(entries)

    def __len__(self) -> int:
        return len(self.storage.entries)
