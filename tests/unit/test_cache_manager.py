"""Unit tests for the content-addressed ArtifactCache."""

import hashlib
import json
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from narrate.cache.manager import ArtifactCache, fingerprint
from narrate.cache.models import CacheEntry


class MutableClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def cached_file(cache: ArtifactCache, key: str, created_at: datetime) -> CacheEntry:
    path = cache.artifact_path(key)
    path.write_bytes(b"audio bytes")
    entry = CacheEntry(
        fingerprint=key,
        artifact_path=path,
        created_at=created_at,
        duration_seconds=1.5,
        provider="elevenlabs",
        text_length=5,
    )
    cache.store(key, entry)
    return entry


class TestFingerprint:
    """Test the text fingerprint function."""

    def test_matches_sha256_of_utf8(self) -> None:
        """Test the fingerprint is the SHA-256 hex digest of UTF-8 bytes."""
        text = "Hola, ¿cómo estás?"

        assert fingerprint(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()

    def test_deterministic(self) -> None:
        """Test the same text always maps to the same key."""
        assert fingerprint("Hello world") == fingerprint("Hello world")

    def test_whitespace_is_significant(self) -> None:
        """Test texts differing only in whitespace get different keys."""
        assert fingerprint("Hello world") != fingerprint("Hello world ")
        assert fingerprint("Hello world") != fingerprint("hello world")

    def test_empty_text_is_hashable(self) -> None:
        """Test empty text has a fingerprint."""
        assert len(fingerprint("")) == 64

    def test_none_rejected(self) -> None:
        """Test None is not a valid input."""
        with pytest.raises(ValueError):
            fingerprint(None)  # type: ignore[arg-type]


class TestArtifactCacheInit:
    """Test cache construction."""

    def test_creates_directory(self, tmp_path: Path) -> None:
        """Test the audio directory is created if missing."""
        cache = ArtifactCache(tmp_path / "a" / "b")

        assert cache.cache_dir.is_dir()
        assert cache.storage.index_path == tmp_path / "a" / "b" / "index.json"

    def test_rejects_non_positive_ttl(self, tmp_path: Path) -> None:
        """Test a zero TTL is refused."""
        with pytest.raises(ValueError, match="ttl must be positive"):
            ArtifactCache(tmp_path, ttl=timedelta(0))

    def test_custom_index_path(self, tmp_path: Path) -> None:
        """Test the index can live outside the audio directory."""
        cache = ArtifactCache(tmp_path / "audio", index_path=tmp_path / "idx.json")

        assert cache.storage.index_path == tmp_path / "idx.json"


class TestArtifactPath:
    """Test where artifacts are written."""

    def test_default_name_is_fingerprint(self, tmp_path: Path) -> None:
        """Test the default file name is <fingerprint>.mp3."""
        cache = ArtifactCache(tmp_path)
        key = fingerprint("text")

        assert cache.artifact_path(key) == tmp_path / f"{key}.mp3"

    def test_explicit_name(self, tmp_path: Path) -> None:
        """Test an explicit output name is used inside the cache directory."""
        cache = ArtifactCache(tmp_path)

        assert cache.artifact_path("k", "narration.mp3") == tmp_path / "narration.mp3"

    def test_explicit_name_cannot_escape(self, tmp_path: Path) -> None:
        """Test directory components in the output name are dropped."""
        cache = ArtifactCache(tmp_path / "audio")

        path = cache.artifact_path("k", "../../etc/evil.mp3")

        assert path == tmp_path / "audio" / "evil.mp3"

    @pytest.mark.parametrize("name", ["..", ".", "audio/..", "../.."])
    def test_name_without_file_component_uses_fingerprint(
        self, tmp_path: Path, name: str
    ) -> None:
        """Test an output name with no usable final component falls back to the key."""
        cache = ArtifactCache(tmp_path / "audio")

        path = cache.artifact_path("k", name)

        assert path == tmp_path / "audio" / "k.mp3"
        assert path.resolve().parent == (tmp_path / "audio").resolve()


class TestArtifactCacheLookup:
    """Test lookup, expiry and eviction."""

    def test_miss(self, tmp_path: Path) -> None:
        """Test lookup of an unknown key returns None."""
        cache = ArtifactCache(tmp_path)

        assert cache.lookup(fingerprint("nothing")) is None

    def test_hit(self, tmp_path: Path) -> None:
        """Test a fresh stored entry is returned."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, clock=clock)
        key = fingerprint("hello")
        entry = cached_file(cache, key, datetime(2026, 10, 18))

        assert cache.lookup(key) == entry

    def test_expired_entry_is_evicted(self, tmp_path: Path) -> None:
        """Test an entry older than the TTL is removed from the index."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, ttl=timedelta(days=30), clock=clock)
        key = fingerprint("old")
        cached_file(cache, key, datetime(2026, 9, 1))

        assert cache.lookup(key) is None
        assert len(cache) == 0
        assert key not in json.loads(cache.storage.index_path.read_text())

    def test_expiry_follows_clock(self, tmp_path: Path) -> None:
        """Test the same entry is valid before the TTL and gone after."""
        clock = MutableClock(datetime(2026, 10, 1))
        cache = ArtifactCache(tmp_path, ttl=timedelta(days=30), clock=clock)
        key = fingerprint("ages")
        cached_file(cache, key, datetime(2026, 10, 1))

        clock.now = datetime(2026, 10, 30, 23, 59)
        assert cache.lookup(key) is not None

        clock.now = datetime(2026, 10, 31)
        assert cache.lookup(key) is None

    def test_missing_file_entry_is_evicted(self, tmp_path: Path) -> None:
        """Test an entry whose audio was deleted is removed and not returned."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, clock=clock)
        key = fingerprint("deleted")
        entry = cached_file(cache, key, datetime(2026, 10, 19))
        entry.artifact_path.unlink()

        assert cache.lookup(key) is None
        assert len(cache) == 0


class TestArtifactCacheStore:
    """Test storing and persistence."""

    def test_store_persists_across_instances(self, tmp_path: Path) -> None:
        """Test a new cache over the same directory sees stored entries."""
        clock = MutableClock(datetime(2026, 10, 19))
        first = ArtifactCache(tmp_path, clock=clock)
        key = fingerprint("persist me")
        entry = cached_file(first, key, datetime(2026, 10, 19))

        second = ArtifactCache(tmp_path, clock=clock)

        assert second.lookup(key) == entry

    def test_store_overwrites(self, tmp_path: Path) -> None:
        """Test storing under an existing key replaces the entry."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, clock=clock)
        key = fingerprint("again")
        cached_file(cache, key, datetime(2026, 10, 10))
        newer = cached_file(cache, key, datetime(2026, 10, 19))

        assert cache.lookup(key) == newer
        assert len(cache) == 1

    def test_store_drops_entries_sharing_the_file(self, tmp_path: Path) -> None:
        """Test a new entry written over another entry's file supersedes it."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, clock=clock)
        shared = cache.artifact_path("", "narration.mp3")
        first_key, second_key = fingerprint("first"), fingerprint("second")
        for key in (first_key, second_key):
            shared.write_bytes(key.encode())
            cache.store(
                key,
                CacheEntry(
                    fingerprint=key,
                    artifact_path=shared,
                    created_at=clock(),
                    duration_seconds=1.0,
                    provider="edge-tts",
                    text_length=5,
                ),
            )

        assert cache.lookup(first_key) is None
        assert cache.lookup(second_key).artifact_path == shared
        assert len(cache) == 1

        stored = json.loads((tmp_path / "index.json").read_text())
        assert list(stored) == [second_key]

    def test_store_rejects_mismatched_key(self, tmp_path: Path) -> None:
        """Test an entry can only be stored under its own fingerprint."""
        cache = ArtifactCache(tmp_path)
        entry = CacheEntry(
            fingerprint=fingerprint("a"),
            artifact_path=tmp_path / "a.mp3",
            created_at=datetime(2026, 10, 19),
            duration_seconds=1.0,
            provider="edge-tts",
            text_length=1,
        )

        with pytest.raises(ValueError, match="does not match"):
            cache.store(fingerprint("b"), entry)

    def test_corrupt_index_starts_empty(self, tmp_path: Path) -> None:
        """Test an unreadable index is treated as empty."""
        (tmp_path / "index.json").write_text("[[[")
        cache = ArtifactCache(tmp_path)

        assert len(cache) == 0
        assert cache.lookup(fingerprint("x")) is None

    def test_malformed_record_is_skipped(self, tmp_path: Path) -> None:
        """Test bad records are dropped while good ones load."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, clock=clock)
        key = fingerprint("good")
        cached_file(cache, key, datetime(2026, 10, 19))
        document = json.loads(cache.storage.index_path.read_text())
        document["bad"] = {"fingerprint": "bad"}
        cache.storage.index_path.write_text(json.dumps(document))

        reloaded = ArtifactCache(tmp_path, clock=clock)

        assert len(reloaded) == 1
        assert reloaded.lookup(key) is not None


class TestArtifactCacheClear:
    """Test clearing the cache."""

    def test_clear_removes_files_and_index(self, tmp_path: Path) -> None:
        """Test clear deletes audio and empties the index."""
        clock = MutableClock(datetime(2026, 10, 19))
        cache = ArtifactCache(tmp_path, clock=clock)
        first = cached_file(cache, fingerprint("one"), datetime(2026, 10, 19))
        second = cached_file(cache, fingerprint("two"), datetime(2026, 10, 19))

        removed = cache.clear()

        assert removed == 2
        assert not first.artifact_path.exists()
        assert not second.artifact_path.exists()
        assert json.loads(cache.storage.index_path.read_text()) == {}

    def test_clear_tolerates_missing_files(self, tmp_path: Path) -> None:
        """Test clear succeeds when an audio file is already gone."""
        cache = ArtifactCache(tmp_path, clock=MutableClock(datetime(2026, 10, 19)))
        entry = cached_file(cache, fingerprint("one"), datetime(2026, 10, 19))
        entry.artifact_path.unlink()

        assert cache.clear() == 1
        assert len(cache) == 0

    def test_clear_empty_cache(self, tmp_path: Path) -> None:
        """Test clearing an empty cache removes nothing."""
        assert ArtifactCache(tmp_path).clear() == 0
