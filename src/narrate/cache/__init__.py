"""Cache management for narrate TTS system."""

from .manager import ArtifactCache, fingerprint
from .models import CacheEntry, CacheValidity

__all__ = ["ArtifactCache", "CacheEntry", "CacheValidity", "fingerprint"]
