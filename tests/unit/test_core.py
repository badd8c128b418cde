"""Unit tests for the core wiring functions."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from narrate.config import parse_config
from narrate.core import build_orchestrator
from narrate.providers import EdgeTTSSynthesizer, ElevenLabsSynthesizer


@pytest.fixture
def config(tmp_path: Path):
    return parse_config(
        {
            "quota": {
                "monthly_limit": 100,
                "warning_threshold": 80,
                "path": str(tmp_path / "quota.json"),
            },
            "cache": {
                "enabled": True,
                "directory": str(tmp_path / "audio"),
                "ttl_days": 30,
            },
            "fallback": {"enabled": False},
        }
    )


class TestBuildOrchestrator:
    """Test build_orchestrator."""

    def test_uses_config(self, config, tmp_path: Path) -> None:
        orchestrator = build_orchestrator(config)

        assert isinstance(orchestrator.primary, ElevenLabsSynthesizer)
        assert isinstance(orchestrator.fallback, EdgeTTSSynthesizer)
        assert orchestrator.cache.cache_dir == tmp_path / "audio"
        assert orchestrator.ledger.path == tmp_path / "quota.json"
        assert orchestrator.ledger.monthly_limit == 100
        assert orchestrator.enable_cache is True
        assert orchestrator.enable_fallback is False
        assert orchestrator.force_fallback is False

    def test_overrides(self, config) -> None:
        orchestrator = build_orchestrator(
            config, cache=False, fallback=True, force_fallback=True
        )

        assert orchestrator.enable_cache is False
        assert orchestrator.enable_fallback is True
        assert orchestrator.force_fallback is True

    def test_no_key_means_no_primary_credentials(self, config) -> None:
        assert build_orchestrator(config).primary.has_credentials is False
