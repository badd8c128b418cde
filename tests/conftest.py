"""Pytest configuration and fixtures for narrate tests."""

import sys
from datetime import timedelta
from pathlib import Path

import pytest

# Add src and tests to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from narrate.cache.manager import ArtifactCache
from narrate.quota.ledger import QuotaLedger
from narrate.tts.pipeline import GenerationOrchestrator
from test_helpers import FIXED_NOW, FakeSynthesizer



@pytest.fixture(autouse=True)
def isolated_env(monkeypatch) -> None:
    """Keep real credentials and overrides from leaking into tests."""
    for name in (
        "ELEVENLABS_API_KEY",
        "ELEVENLABS_VOICE_ID",
        "ELEVENLABS_MODEL_ID",
        "NARRATE_CACHE_DIR",
        "NARRATE_QUOTA_PATH",
        "NARRATE_MONTHLY_LIMIT",
        "NARRATE_FALLBACK_VOICE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def cache(tmp_path: Path, clock) -> ArtifactCache:
    return ArtifactCache(tmp_path / "audio", ttl=timedelta(days=30), clock=clock)


@pytest.fixture
def ledger(tmp_path: Path, clock) -> QuotaLedger:
    return QuotaLedger(
        tmp_path / "quota.json",
        monthly_limit=10000,
        warning_threshold=8000,
        clock=clock,
    )


@pytest.fixture
def primary() -> FakeSynthesizer:
    return FakeSynthesizer("elevenlabs", metered=True)


@pytest.fixture
def fallback() -> FakeSynthesizer:
    return FakeSynthesizer("edge-tts", metered=False)


@pytest.fixture
def orchestrator(cache, ledger, primary, fallback, clock) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        cache=cache,
        ledger=ledger,
        primary=primary,
        fallback=fallback,
        clock=clock,
    )
