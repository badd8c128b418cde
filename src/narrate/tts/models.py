"""TTS data models with validation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


class ProviderRole(str, Enum):
    """Which synthesis strategy produced an artifact."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass
class VoiceSettings:
    """Voice generation settings sent to ElevenLabs.

    Args:
        stability: Voice stability (0.0-1.0)
        similarity_boost: Voice similarity boost (0.0-1.0)
        style: Voice style exaggeration (0.0-1.0)
        use_speaker_boost: Whether to use speaker boost
    """

    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True

    def __post_init__(self) -> None:
        """Validate voice settings."""
        if not 0.0 <= self.stability <= 1.0:
            raise ValueError("stability must be between 0.0 and 1.0")
        if not 0.0 <= self.similarity_boost <= 1.0:
            raise ValueError("similarity_boost must be between 0.0 and 1.0")
        if not 0.0 <= self.style <= 1.0:
            raise ValueError("style must be between 0.0 and 1.0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "stability": self.stability,
            "similarity_boost": self.similarity_boost,
            "style": self.style,
            "use_speaker_boost": self.use_speaker_boost,
        }


@dataclass(frozen=True)
class GenerationRequest:
    """A request to turn text into an audio artifact.

    Args:
        text: Text to synthesize (must contain non-whitespace characters)
        output_name: Optional file name for the artifact inside the cache
            directory. Defaults to ``<fingerprint>.mp3``.
        force_regenerate: Skip the cache read (the result is still cached)
        force_fallback: Skip the primary provider entirely
    """

    text: str
    output_name: str | None = None
    force_regenerate: bool = False
    force_fallback: bool = False

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("Text cannot be empty")


@dataclass(frozen=True)
class SynthesisOutput:
    """What a Synthesizer hands back after writing an artifact."""

    artifact_path: Path
    duration_seconds: float
    units_consumed: int
    voice_id: str | None = None
    model_id: str | None = None


@dataclass(frozen=True)
class GenerationMetadata:
    """Provenance of a generated artifact."""

    voice_id: str | None
    model_id: str | None
    generated_at: datetime
    fingerprint: str


@dataclass(frozen=True)
class GenerationResult:
    """Uniform outcome of a generation request.

    ``from_cache`` tells a cache hit apart from a fresh synthesis; a hit
    never consumes quota, so ``characters_used`` is 0 on that path.
    """

    audio_path: Path
    duration_seconds: float
    provider: str
    role: ProviderRole
    from_cache: bool
    characters_used: int
    metadata: GenerationMetadata


@dataclass(frozen=True)
class WordTiming:
    """Frame span of a single word in the narration."""

    word: str
    start_frame: int
    end_frame: int


@dataclass(frozen=True)
class AudioResult:
    """Legacy result shape consumed by the video renderer."""

    audio_path: Path
    duration_seconds: float
    duration_frames: int
    subtitles: list[WordTiming] = field(default_factory=list)
