"""Integration tests for EdgeTTSSynthesizer against a real subprocess."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from narrate.config import FallbackConfig
from narrate.providers.edge import EdgeTTSSynthesizer
from narrate.tts.errors import ProviderError, ToolMissingError
from test_helpers import FAKE_EDGE_TTS_SCRIPT, no_probe, write_executable

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(sys.platform == "win32", reason="uses /bin/sh scripts"),
]


def make_synthesizer(executable: Path, install_command=None, timeout=10.0):
    return EdgeTTSSynthesizer(
        FallbackConfig(executable=str(executable), timeout_seconds=timeout),
        probe=no_probe,
        install_command=install_command,
    )


class TestEdgeTTSSubprocess:
    """Test the edge-tts invocation end to end."""

    @pytest.mark.asyncio
    async def test_writes_artifact(self, tmp_path: Path) -> None:
        exe = write_executable(tmp_path / "edge-tts", FAKE_EDGE_TTS_SCRIPT)
        output = tmp_path / "out" / "hola.mp3"

        result = await make_synthesizer(exe).synthesize("Hola mundo", output)

        assert output.read_text() == "Hola mundo"
        assert result.units_consumed == 0
        assert result.duration_seconds == 1.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text",
        [
            'She said "hello"',
            "It's a 'test'",
            "Cost: $HOME and $(whoami)",
            "Run `rm -rf /` now",
            "back\\slash",
            "-n leading dash",
            "¿Qué tal? ñandú",
        ],
    )
    async def test_text_reaches_tool_verbatim(self, tmp_path: Path, text: str) -> None:
        """Test shell-significant characters arrive unchanged."""
        exe = write_executable(tmp_path / "edge-tts", FAKE_EDGE_TTS_SCRIPT)
        output = tmp_path / "out.mp3"

        await make_synthesizer(exe).synthesize(text, output)

        assert output.read_text(encoding="utf-8") == text

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, tmp_path: Path) -> None:
        exe = write_executable(
            tmp_path / "edge-tts", "#!/bin/sh\necho 'voice not found' >&2\nexit 3\n"
        )

        with pytest.raises(ProviderError, match="failed with code 3: voice not found"):
            await make_synthesizer(exe).synthesize("Hola", tmp_path / "out.mp3")

    @pytest.mark.asyncio
    async def test_timeout_kills_tool(self, tmp_path: Path) -> None:
        exe = write_executable(tmp_path / "edge-tts", "#!/bin/sh\nexec sleep 5\n")

        with pytest.raises(ProviderError, match="timed out"):
            await make_synthesizer(exe, timeout=0.2).synthesize(
                "Hola", tmp_path / "out.mp3"
            )


class TestEdgeTTSInstall:
    """Test installing the tool on demand."""

    @pytest.mark.asyncio
    async def test_installs_then_runs(self, tmp_path: Path) -> None:
        """Test a missing tool is installed and the call retried once."""
        template = write_executable(tmp_path / "template", FAKE_EDGE_TTS_SCRIPT)
        exe = tmp_path / "bin" / "edge-tts"
        exe.parent.mkdir()
        install = ["/bin/sh", "-c", f"cp '{template}' '{exe}' && chmod +x '{exe}'"]
        output = tmp_path / "out.mp3"

        result = await make_synthesizer(exe, install).synthesize("Instalado", output)

        assert exe.exists()
        assert output.read_text() == "Instalado"
        assert result.artifact_path == output

    @pytest.mark.asyncio
    async def test_install_failure(self, tmp_path: Path) -> None:
        exe = tmp_path / "missing-edge-tts"
        install = ["/bin/sh", "-c", "echo 'no network' >&2; exit 1"]

        with pytest.raises(ToolMissingError, match="pip install edge-tts"):
            await make_synthesizer(exe, install).synthesize("Hola", tmp_path / "o.mp3")

    @pytest.mark.asyncio
    async def test_install_succeeds_but_tool_still_missing(self, tmp_path: Path) -> None:
        exe = tmp_path / "never-installed"

        with pytest.raises(ToolMissingError, match="not found"):
            await make_synthesizer(exe, ["/bin/sh", "-c", "true"]).synthesize(
                "Hola", tmp_path / "o.mp3"
            )
