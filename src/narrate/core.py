"""Core functionality for narrate - builds orchestrators and runs requests."""

import logging

from .config import NarrateConfig, load_config
from .quota.models import QuotaStatus
from .tts.models import AudioResult, GenerationRequest, GenerationResult
from .tts.pipeline import GenerationOrchestrator

logger = logging.getLogger(__name__)


def build_orchestrator(
    config: NarrateConfig | None = None,
    cache: bool | None = None,
    fallback: bool | None = None,
    force_fallback: bool = False,
) -> GenerationOrchestrator:
    """Create an orchestrator from configuration.

    Args:
        config: Loaded configuration (reads the config file if omitted)
        cache: Override cache.enabled
        fallback: Override fallback.enabled
        force_fallback: Never call the primary provider
    """
    config = config or load_config()
    if not config.has_credentials:
        logger.debug("ELEVENLABS_API_KEY not set; requests will use the fallback")
    return GenerationOrchestrator.from_config(
        config,
        force_fallback=force_fallback,
        enable_cache=cache,
        enable_fallback=fallback,
    )


async def generate_audio(
    text: str,
    output_name: str | None = None,
    force_regenerate: bool = False,
    force_fallback: bool = False,
    cache: bool | None = None,
    fallback: bool | None = None,
    config: NarrateConfig | None = None,
) -> GenerationResult:
    """Convert text to an audio file, reusing cached audio when possible.

    Args:
        text: Text to convert to speech
        output_name: Optional artifact file name inside the cache directory
        force_regenerate: Ignore any cached audio for this text
        force_fallback: Use the local fallback provider only
        cache: Override cache.enabled
        fallback: Override fallback.enabled
        config: Loaded configuration (reads the config file if omitted)

    Raises:
        CredentialMissingError: If no API key is set and fallback is disabled
        ProviderError: If synthesis fails
        ArtifactNotProducedError: If no audio file was written
        OSError: If the cache index or quota file cannot be written
        ValueError: If text is empty
    """
    request = GenerationRequest(
        text=text,
        output_name=output_name,
        force_regenerate=force_regenerate,
        force_fallback=force_fallback,
    )
    orchestrator = build_orchestrator(config, cache=cache, fallback=fallback)
    return await orchestrator.generate(request)


async def generate_audio_legacy(
    text: str,
    output_name: str = "narration.mp3",
    config: NarrateConfig | None = None,
) -> AudioResult:
    """Generate audio plus word-by-word subtitle frames for the renderer."""
    return await build_orchestrator(config).generate_legacy(text, output_name)


def get_quota_status(config: NarrateConfig | None = None) -> QuotaStatus:
    return build_orchestrator(config).quota_status()


def reset_quota(config: NarrateConfig | None = None) -> None:
    build_orchestrator(config).reset_quota()


def clear_cache(config: NarrateConfig | None = None) -> int:
    return build_orchestrator(config).clear_cache()
