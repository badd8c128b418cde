"""Data models for cache storage."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from ..clock import parse_timestamp


class CacheValidity(Enum):
    """Outcome of checking a cache entry against disk and TTL."""

    VALID = "valid"
    MISSING_FILE = "missing_file"
    EXPIRED = "expired"


@dataclass
class CacheEntry:
    """Cache entry pointing at a previously generated audio file.

    Attributes:
        fingerprint: SHA-256 hex digest of the source text
        artifact_path: Path to the cached audio file
        created_at: When the audio was generated
        duration_seconds: Measured (or estimated) audio length
        provider: Provider name that produced the audio
        text_length: Character count of the source text
    """

    fingerprint: str
    artifact_path: Path
    created_at: datetime
    duration_seconds: float
    provider: str
    text_length: int

    def validity(self, ttl: timedelta, now: datetime) -> CacheValidity:
        """Check the entry without raising.

        The backing file must exist and the entry must be younger than ttl.
        """
        if not self.artifact_path.exists():
            return CacheValidity.MISSING_FILE
        if now - self.created_at >= ttl:
            return CacheValidity.EXPIRED
        return CacheValidity.VALID

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "artifactPath": str(self.artifact_path),
            "createdAt": self.created_at.isoformat(),
            "durationSeconds": self.duration_seconds,
            "provider": self.provider,
            "textLength": self.text_length,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        """Rebuild an entry from its index document form.

        Raises:
            KeyError, ValueError, TypeError: If the record is malformed
        """
        return cls(
            fingerprint=data["fingerprint"],
            artifact_path=Path(data["artifactPath"]),
            created_at=parse_timestamp(data["createdAt"]),
            duration_seconds=float(data["durationSeconds"]),
            provider=data["provider"],
            text_length=int(data["textLength"]),
        )
