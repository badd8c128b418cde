"""ElevenLabs text-to-speech provider implementation."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

from elevenlabs.client import ElevenLabs
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import ElevenLabsConfig, RetryConfig
from ..tts.errors import (
    ArtifactNotProducedError,
    CredentialMissingError,
    ProviderError,
    TTSAuthError,
)
from ..tts.models import SynthesisOutput, VoiceSettings
from .base import Synthesizer
from .duration import probe_duration

logger = logging.getLogger(__name__)

# Friendly names accepted in place of raw voice IDs
VOICE_IDS: dict[str, str] = {
    "adam": "pNInz6obpgDQGcFmaJgB",
    "josh": "a38v0NaUbsvackET0tSL",
    "arnold": "VR6AewLTigWG4xSOukaG",
    "sam": "yoZ06aMxZJJ28mfd3POQ",
    "daniel": "onwK4e9ZLuTAKqWW03F9",
    "charlie": "IKne3meq5aSn9XLyUdCD",
    "james": "ZQe5CZNOzWyzPSCn5a3c",
    "ethan": "g5CIjZEefAph4nQFvHAz",
    "clyde": "2EiwWnXFnvU5JabPnv8n",
    "bella": "EXAVITQu4vr4xnSDxMaL",
    "rachel": "21m00Tcm4TlvDq8ikWAM",
    "domi": "AZnzlk1XvdvUeBnXmlld",
    "elli": "MF3mGyEYCl7XYWbV9V6O",
    "emily": "LcfcDJNUP1GQjkzn1xUU",
    "grace": "oWAxZDx7w5VEj9dCyTzz",
    "charlotte": "XB0fDUnXU5powFXDhCwa",
    "matilda": "XrExE9yKIg1WjnnlVkGX",
    "serena": "pMsXgVXv3BLzUgSXRplE",
    "bill": "pqHfZKP75CvOlQylNhV4",
    "george": "JBFqnCBsd6RMkjVDRZzb",
    "callum": "N2lVS1w4EtoT3dr4eOWO",
    "liam": "TX3LPaxmHKxFdv7VOQHJ",
    "will": "bIHbv24MWmeRgasZH58o",
}


def resolve_voice_id(voice: str) -> str:
    """Map a friendly voice name to its ElevenLabs ID; pass IDs through."""
    return VOICE_IDS.get(voice.lower(), voice)


def map_api_error(error: Exception, provider: str = "elevenlabs") -> ProviderError:
    """Translate an SDK/transport exception into our error hierarchy."""
    message = str(error)
    status = getattr(error, "status_code", None)
    if not isinstance(status, int):
        status = None

    if status == 401 or "unauthorized" in message.lower() or "401" in message:
        return TTSAuthError(
            f"Authentication failed: {error}", 401, error, provider=provider
        )
    if status == 429 or "429" in message:
        return ProviderError(
            f"Rate limit exceeded: {error}", 429, error, provider=provider
        )
    if (status is not None and status >= 500) or message[:1] == "5":
        return ProviderError(
            f"Server error: {error}", status or 500, error, provider=provider
        )
    return ProviderError(f"API call failed: {error}", status, error, provider=provider)


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, TTSAuthError) or not isinstance(error, ProviderError):
        return False
    return error.transient or isinstance(error.original_error, TimeoutError)


class ElevenLabsSynthesizer(Synthesizer):
    """ElevenLabs TTS provider implementation.

    Metered: every successful call consumes one unit per input character.
    The remote call carries its own bounded timeout and transient faults
    are retried with exponential backoff before the failure is reported.
    """

    name = "elevenlabs"

    def __init__(
        self,
        settings: ElevenLabsConfig | None = None,
        api_key: str | None = None,
        retry: RetryConfig | None = None,
        probe: Callable[[Path], Awaitable[float]] = probe_duration,
    ) -> None:
        """Initialize ElevenLabs provider.

        The SDK client is created on first use so a missing key is reported
        per request rather than at construction time.

        Args:
            settings: Voice, model and timeout settings
            api_key: ElevenLabs API key. If not provided, reads from
                    ELEVENLABS_API_KEY environment variable.
            retry: Backoff policy for transient failures
            probe: Coroutine measuring the duration of a written file
        """
        self.settings = settings or ElevenLabsConfig()
        self.retry = retry or RetryConfig()
        self.voice_id = resolve_voice_id(self.settings.voice)
        self.voice_settings = VoiceSettings(
            stability=self.settings.stability,
            similarity_boost=self.settings.similarity_boost,
            style=self.settings.style,
            use_speaker_boost=self.settings.use_speaker_boost,
        )
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        self._client: ElevenLabs | None = None
        self._probe = probe

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> ElevenLabs:
        if self._client is None:
            if not self._api_key:
                raise CredentialMissingError(
                    "ElevenLabs API key not found. Set ELEVENLABS_API_KEY environment "
                    "variable or provide api_key parameter."
                )
            try:
                self._client = ElevenLabs(
                    api_key=self._api_key, timeout=self.settings.timeout_seconds
                )
            except Exception as e:
                raise TTSAuthError(
                    f"Failed to initialize ElevenLabs client: {e}",
                    original_error=e,
                    provider=self.name,
                ) from e
        return self._client

    async def synthesize(self, text: str, output_path: Path) -> SynthesisOutput:
        """Convert text to an MP3 file via the ElevenLabs API.

        Args:
            text: Text to convert to speech
            output_path: Where to write the returned audio

        Returns:
            SynthesisOutput with units_consumed equal to len(text)

        Raises:
            CredentialMissingError: If no API key is configured
            TTSAuthError: If authentication fails
            ProviderError: If the API call fails after retries
            ArtifactNotProducedError: If the file is absent after writing
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        client = self._get_client()

        logger.info(f"Calling ElevenLabs API ({len(text)} chars, voice {self.voice_id})")
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential(
                multiplier=self.retry.delay_seconds,
                exp_base=self.retry.backoff_multiplier,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        audio_bytes = await retrying(self._convert, client, text)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(audio_bytes)
        if not output_path.exists():
            raise ArtifactNotProducedError(output_path, provider=self.name)

        duration = await self._probe(output_path)
        logger.info(f"ElevenLabs audio generated ({duration:.1f}s) -> {output_path}")

        return SynthesisOutput(
            artifact_path=output_path,
            duration_seconds=duration,
            units_consumed=len(text),
            voice_id=self.voice_id,
            model_id=self.settings.model,
        )

    async def _convert(self, client: ElevenLabs, text: str) -> bytes:
        # Run synchronous ElevenLabs client in thread to avoid blocking event loop
        def _sync_convert() -> bytes:
            audio_generator = client.text_to_speech.convert(
                voice_id=self.voice_id,
                text=text,
                model_id=self.settings.model,
                output_format=self.settings.output_format,
                voice_settings=self.voice_settings.to_dict(),
            )
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.wait_for(
                asyncio.to_thread(_sync_convert), timeout=self.settings.timeout_seconds
            )
        except TimeoutError as e:
            raise ProviderError(
                f"ElevenLabs request timed out after {self.settings.timeout_seconds}s",
                original_error=e,
                provider=self.name,
            ) from e
        except Exception as e:
            raise map_api_error(e, self.name) from e

        if not audio_bytes:
            raise ProviderError("No audio data received from API", provider=self.name)

        return audio_bytes
