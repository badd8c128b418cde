"""TTS (Text-to-Speech) package for narrate.

This package provides the generation orchestrator, its data models and
the error hierarchy shared by all providers.
"""

from .errors import (
    ArtifactNotProducedError,
    CredentialMissingError,
    ProviderError,
    ToolMissingError,
    TTSAuthError,
    TTSError,
)
from .models import (
    AudioResult,
    GenerationMetadata,
    GenerationRequest,
    GenerationResult,
    ProviderRole,
    SynthesisOutput,
    VoiceSettings,
    WordTiming,
)

__all__ = [
    "ArtifactNotProducedError",
    "AudioResult",
    "CredentialMissingError",
    "GenerationMetadata",
    "GenerationRequest",
    "GenerationResult",
    "ProviderError",
    "ProviderRole",
    "SynthesisOutput",
    "TTSAuthError",
    "TTSError",
    "ToolMissingError",
    "VoiceSettings",
    "WordTiming",
]
