"""High-level API for narrate library usage."""

from pathlib import Path

from .config import NarrateConfig
from .core import generate_audio


async def generate(
    text: str,
    output: str | Path | None = None,
    force_regenerate: bool = False,
    force_fallback: bool = False,
    config: NarrateConfig | None = None,
) -> Path:
    """Synthesize speech from text and return the audio file path.

    Args:
        text: Text to speak
        output: Artifact file name inside the cache directory
        force_regenerate: Ignore cached audio for this text
        force_fallback: Use the local fallback provider only
        config: Loaded configuration (reads the config file if omitted)

    Returns:
        Path to the generated or cached audio file

    Raises:
        CredentialMissingError: If no API key is set and fallback is disabled
        ProviderError: If synthesis fails
        ValueError: If text is empty
    """
    result = await generate_audio(
        text,
        output_name=str(output) if output else None,
        force_regenerate=force_regenerate,
        force_fallback=force_fallback,
        config=config,
    )
    return result.audio_path
