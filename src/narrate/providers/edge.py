"""Fallback TTS provider driving the edge-tts command line tool.

edge-tts is free and runs locally, so it is used whenever ElevenLabs is out
of quota, unconfigured or failing. The tool is invoked with an argument
vector rather than a shell, and is installed with pip on demand if missing.
"""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

from ..config import FallbackConfig
from ..tts.errors import ArtifactNotProducedError, ProviderError, ToolMissingError
from ..tts.models import SynthesisOutput
from .base import Synthesizer
from .duration import probe_duration

logger = logging.getLogger(__name__)

INSTALL_PACKAGE = "edge-tts"


def escape_text(text: str) -> str:
    """Make text safe to pass as a single command argument.

    Quotes, backticks, dollar signs and backslashes need no escaping because
    no shell is involved; NUL is the one character an argument cannot hold.
    """
    return text.replace("\x00", "")


class EdgeTTSSynthesizer(Synthesizer):
    """Local edge-tts synthesizer. Consumes no quota."""

    name = "edge-tts"

    def __init__(
        self,
        settings: FallbackConfig | None = None,
        probe: Callable[[Path], Awaitable[float]] = probe_duration,
        install_command: list[str] | None = None,
    ) -> None:
        """Initialize the fallback synthesizer.

        Args:
            settings: Voice, rate, pitch, timeout and executable
            probe: Coroutine measuring the duration of a written file
            install_command: Command that installs the tool when missing
        """
        self.settings = settings or FallbackConfig()
        self._probe = probe
        self.install_command = install_command or [
            sys.executable,
            "-m",
            "pip",
            "install",
            INSTALL_PACKAGE,
        ]

    def build_command(self, text: str, output_path: Path) -> list[str]:
        # "--opt=value" keeps values like "-10%" or "-text" from parsing as flags
        return [
            self.settings.executable,
            f"--voice={self.settings.voice}",
            f"--rate={self.settings.rate}",
            f"--pitch={self.settings.pitch}",
            f"--text={escape_text(text)}",
            f"--write-media={output_path}",
        ]

    async def synthesize(self, text: str, output_path: Path) -> SynthesisOutput:
        """Convert text to speech with edge-tts.

        If the executable is missing, installs it once and retries the
        invocation once.

        Raises:
            ToolMissingError: If the tool is absent and cannot be installed
            ProviderError: If the tool fails or times out
            ArtifactNotProducedError: If the tool exits cleanly without output
            ValueError: If text is empty
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        command = self.build_command(text, output_path)

        logger.info(f"Generating with edge-tts (voice {self.settings.voice})")
        try:
            await self._run(command)
        except ToolMissingError:
            logger.warning(f"{self.settings.executable} not installed, installing...")
            await self._install()
            await self._run(command)

        if not output_path.exists():
            raise ArtifactNotProducedError(output_path, provider=self.name)

        duration = await self._probe(output_path)
        logger.info(f"Fallback audio generated ({duration:.1f}s) -> {output_path}")

        return SynthesisOutput(
            artifact_path=output_path,
            duration_seconds=duration,
            units_consumed=0,
            voice_id=self.settings.voice,
            model_id=self.name,
        )

    async def _run(self, cmd: list[str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
        except FileNotFoundError as e:
            raise ToolMissingError(
                f"{cmd[0]} not found", original_error=e, provider=self.name
            ) from e
        except OSError as e:
            raise ProviderError(
                f"Failed to start {cmd[0]}: {e}", original_error=e, provider=self.name
            ) from e

        try:
            _, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.settings.timeout_seconds
            )
        except TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise ProviderError(
                f"edge-tts timed out after {self.settings.timeout_seconds}s",
                original_error=e,
                provider=self.name,
            ) from e

        if proc.returncode != 0:
            raise ProviderError(
                f"edge-tts failed with code {proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}",
                provider=self.name,
            )

    async def _install(self) -> None:
        manual = f"Install manually with: pip install {INSTALL_PACKAGE}"
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.install_command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.settings.timeout_seconds
            )
        except (OSError, TimeoutError) as e:
            raise ToolMissingError(
                f"Could not install {INSTALL_PACKAGE}: {e}. {manual}",
                original_error=e,
                provider=self.name,
            ) from e

        if proc.returncode != 0:
            raise ToolMissingError(
                f"Could not install {INSTALL_PACKAGE}: "
                f"{stderr.decode(errors='replace').strip()}. {manual}",
                provider=self.name,
            )
