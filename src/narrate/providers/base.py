"""Abstract base class for speech synthesizers.

This module defines the interface that both the metered primary provider
and the free local fallback implement, so the orchestrator never depends
on how audio is actually produced.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from ..tts.models import SynthesisOutput


class Synthesizer(ABC):
    """Abstract base class for text-to-speech synthesizers.

    Implementations write the audio to the path they are given and report
    its duration and how many quota units the call consumed.
    """

    name: ClassVar[str]

    @property
    def has_credentials(self) -> bool:
        """Whether the synthesizer is configured well enough to be called."""
        return True

    @abstractmethod
    async def synthesize(self, text: str, output_path: Path) -> SynthesisOutput:
        """Convert text to an audio file.

        Args:
            text: The text to convert to speech
            output_path: Where the audio file must be written

        Returns:
            SynthesisOutput describing the written file

        Raises:
            ProviderError: On transport, authentication or processing faults
            ArtifactNotProducedError: If the call succeeded but no file exists
        """
        pass
