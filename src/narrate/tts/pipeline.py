"""Generation orchestrator for narrate.

Coordinates the ArtifactCache, QuotaLedger and the two Synthesizers so a
piece of text becomes an audio file with as few metered calls as possible:

    cache check -> quota check -> primary attempt -> fallback attempt
    -> persist -> done

Any attempt state can end in failure. A cache hit skips everything after
the cache check, quota is charged only when the primary provider produced
audio, and nothing is cached unless a synthesizer succeeded.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..cache.manager import ArtifactCache, fingerprint
from ..cache.models import CacheEntry
from ..config import NarrateConfig
from ..providers.base import Synthesizer
from ..providers.edge import EdgeTTSSynthesizer
from ..providers.elevenlabs import ElevenLabsSynthesizer
from ..quota.ledger import QuotaLedger
from ..quota.models import QuotaStatus
from .errors import CredentialMissingError, ProviderError, TTSError
from .models import (
    AudioResult,
    GenerationMetadata,
    GenerationRequest,
    GenerationResult,
    ProviderRole,
    SynthesisOutput,
)
from .timing import duration_to_frames, generate_word_timings, split_words

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Turns text into a cached audio artifact under a metered quota.

    Every collaborator is injected so tests can run isolated instances
    against temporary directories and fake synthesizers.

    Example:
        orchestrator = GenerationOrchestrator.from_config(load_config())

        result = await orchestrator.generate(GenerationRequest(text="Hola mundo"))
        # result.provider == "elevenlabs", result.from_cache is False

        result = await orchestrator.generate(GenerationRequest(text="Hola mundo"))
        # result.from_cache is True, result.characters_used == 0
    """

    def __init__(
        self,
        cache: ArtifactCache,
        ledger: QuotaLedger,
        primary: Synthesizer,
        fallback: Synthesizer,
        enable_cache: bool = True,
        enable_fallback: bool = True,
        force_fallback: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            cache: Artifact cache; also decides where new audio is written
            ledger: Quota ledger for the primary provider
            primary: Metered synthesizer
            fallback: Free synthesizer
            enable_cache: Read from and write to the cache
            enable_fallback: Recover from primary failure or a missing
                credential with the fallback synthesizer
            force_fallback: Never call the primary synthesizer
            clock: Source of generation timestamps
        """
        self.cache = cache
        self.ledger = ledger
        self.primary = primary
        self.fallback = fallback
        self.enable_cache = enable_cache
        self.enable_fallback = enable_fallback
        self.force_fallback = force_fallback
        self._clock = clock

        logger.debug(
            f"GenerationOrchestrator initialized with primary={primary.name}, "
            f"fallback={fallback.name}, cache={'on' if enable_cache else 'off'}, "
            f"fallback_enabled={enable_fallback}, force_fallback={force_fallback}"
        )

    @classmethod
    def from_config(
        cls,
        config: NarrateConfig,
        force_fallback: bool = False,
        enable_cache: bool | None = None,
        enable_fallback: bool | None = None,
    ) -> "GenerationOrchestrator":
        """Build an orchestrator with the real providers described by config."""
        return cls(
            cache=ArtifactCache(
                config.cache.directory,
                ttl=config.cache.ttl,
                index_path=config.cache.index_path,
            ),
            ledger=QuotaLedger(
                config.quota.path,
                monthly_limit=config.quota.monthly_limit,
                warning_threshold=config.quota.warning_threshold,
            ),
            primary=ElevenLabsSynthesizer(
                config.elevenlabs, api_key=config.api_key, retry=config.retry
            ),
            fallback=EdgeTTSSynthesizer(config.fallback),
            enable_cache=config.cache.enabled if enable_cache is None else enable_cache,
            enable_fallback=(
                config.fallback.enabled if enable_fallback is None else enable_fallback
            ),
            force_fallback=force_fallback,
        )

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one request through the generation state machine.

        Args:
            request: Text plus cache/provider overrides

        Returns:
            GenerationResult for either a cache hit or a fresh artifact

        Raises:
            CredentialMissingError: No API key and fallback disabled
            ProviderError: The last attempted synthesizer failed
            ArtifactNotProducedError: A synthesizer reported success but
                wrote nothing
            OSError: The cache index or quota ledger could not be written
        """
        text = request.text
        key = fingerprint(text)
        logger.info(f"Generating audio for {len(text)} characters ({key[:12]})")

        # === CACHE CHECK ===
        if self.enable_cache and not request.force_regenerate:
            entry = self.cache.lookup(key)
            if entry is not None:
                logger.info(f"Audio found in cache: {entry.artifact_path}")
                return self._result_from_cache(entry)

        output_path = self.cache.artifact_path(key, request.output_name)

        # === QUOTA CHECK ===
        if self.force_fallback or request.force_fallback:
            logger.info("Fallback forced, skipping primary provider")
            output = await self._attempt_fallback(text, output_path)
            role = ProviderRole.FALLBACK
        else:
            output, role = await self._attempt_with_quota(text, output_path)

        # === PERSIST ===
        generated_at = self._clock()
        provider_name = self.primary.name if role is ProviderRole.PRIMARY else self.fallback.name
        if self.enable_cache:
            self.cache.store(
                key,
                CacheEntry(
                    fingerprint=key,
                    artifact_path=output.artifact_path,
                    created_at=generated_at,
                    duration_seconds=output.duration_seconds,
                    provider=provider_name,
                    text_length=len(text),
                ),
            )

        return GenerationResult(
            audio_path=output.artifact_path,
            duration_seconds=output.duration_seconds,
            provider=provider_name,
            role=role,
            from_cache=False,
            characters_used=output.units_consumed,
            metadata=GenerationMetadata(
                voice_id=output.voice_id,
                model_id=output.model_id,
                generated_at=generated_at,
                fingerprint=key,
            ),
        )

    async def _attempt_with_quota(
        self, text: str, output_path: Path
    ) -> tuple[SynthesisOutput, ProviderRole]:
        status = self.ledger.status()

        if status.exceeded:
            logger.warning(
                f"ElevenLabs quota exceeded ({status.used}/{status.limit}), using fallback"
            )
            return await self._attempt_fallback(text, output_path), ProviderRole.FALLBACK

        if status.near_limit:
            logger.warning(f"Quota at {status.percent_used:.1f}% - near the limit")

        if not self.primary.has_credentials:
            if not self.enable_fallback:
                raise CredentialMissingError(
                    f"No API key configured for {self.primary.name} and fallback is disabled"
                )
            logger.warning(f"No API key configured for {self.primary.name}, using fallback")
            return await self._attempt_fallback(text, output_path), ProviderRole.FALLBACK

        # === PRIMARY ATTEMPT ===
        try:
            output = await self.primary.synthesize(text, output_path)
        except (ProviderError, CredentialMissingError) as primary_error:
            logger.error(f"Error from {self.primary.name}: {primary_error}")
            if not self.enable_fallback:
                raise
            logger.info(f"Retrying with fallback ({self.fallback.name})")
            return (
                await self._attempt_fallback(text, output_path, primary_error),
                ProviderRole.FALLBACK,
            )

        self.ledger.charge(output.units_consumed)
        return output, ProviderRole.PRIMARY

    async def _attempt_fallback(
        self, text: str, output_path: Path, cause: Exception | None = None
    ) -> SynthesisOutput:
        # === FALLBACK ATTEMPT ===
        try:
            return await self.fallback.synthesize(text, output_path)
        except TTSError as e:
            if cause is not None:
                raise e from cause
            raise

    def _result_from_cache(self, entry: CacheEntry) -> GenerationResult:
        role = (
            ProviderRole.PRIMARY
            if entry.provider == self.primary.name
            else ProviderRole.FALLBACK
        )
        return GenerationResult(
            audio_path=entry.artifact_path,
            duration_seconds=entry.duration_seconds,
            provider=entry.provider,
            role=role,
            from_cache=True,
            characters_used=0,
            metadata=GenerationMetadata(
                voice_id=None,
                model_id=None,
                generated_at=entry.created_at,
                fingerprint=entry.fingerprint,
            ),
        )

    async def generate_legacy(
        self, text: str, output_name: str = "narration.mp3"
    ) -> AudioResult:
        """Generate audio and derive per-word subtitle frames at 30 fps."""
        result = await self.generate(GenerationRequest(text=text, output_name=output_name))

        total_frames = duration_to_frames(result.duration_seconds)
        return AudioResult(
            audio_path=result.audio_path,
            duration_seconds=result.duration_seconds,
            duration_frames=total_frames,
            subtitles=generate_word_timings(split_words(text), total_frames),
        )

    def quota_status(self) -> QuotaStatus:
        return self.ledger.status()

    def reset_quota(self) -> None:
        self.ledger.reset()

    def clear_cache(self) -> int:
        return self.cache.clear()
