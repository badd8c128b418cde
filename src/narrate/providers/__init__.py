"""Synthesis providers.

Two interchangeable strategies share the Synthesizer contract: the metered
ElevenLabs API and the free local edge-tts tool.
"""

from .base import Synthesizer
from .edge import EdgeTTSSynthesizer
from .elevenlabs import ElevenLabsSynthesizer

__all__ = ["EdgeTTSSynthesizer", "ElevenLabsSynthesizer", "Synthesizer"]
