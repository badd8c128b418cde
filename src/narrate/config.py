"""Configuration management for narrate.

Loads configuration from ~/.config/narrate/config.toml.
Priority chain: CLI flags > env vars > config file.
"""

import os
import sys
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

CONFIG_DIR = Path.home() / ".config" / "narrate"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# narrate configuration

[quota]
# Characters available on the ElevenLabs plan per calendar month
monthly_limit = 10000

# Log a warning once usage reaches this many characters
warning_threshold = 8000

# Where the usage ledger is stored
path = "~/.cache/narrate/quota.json"

[cache]
# Reuse audio generated for identical text
enabled = true

# Audio files and index.json live here
directory = "~/.cache/narrate/audio"

# Entries older than this are regenerated
ttl_days = 30

[elevenlabs]
# Friendly name (adam, josh, rachel, ...) or a raw ElevenLabs voice ID
voice = "josh"
model = "eleven_multilingual_v2"
output_format = "mp3_44100_128"
stability = 0.5
similarity_boost = 0.75
style = 0.0
use_speaker_boost = true
timeout_seconds = 60

[fallback]
# Free local synthesis with edge-tts when ElevenLabs is unavailable
enabled = true
voice = "es-MX-JorgeNeural"
rate = "+0%"
pitch = "+0Hz"
timeout_seconds = 120
executable = "edge-tts"

[retry]
# Transient ElevenLabs failures (429, 5xx, timeouts) are retried
max_attempts = 3
delay_seconds = 1.0
backoff_multiplier = 2.0

# API keys are read from environment variables, not this file:
#   ELEVENLABS_API_KEY  - ElevenLabs provider
"""


@dataclass(frozen=True)
class QuotaConfig:
    """Metered usage limits."""

    monthly_limit: int
    warning_threshold: int
    path: Path


@dataclass(frozen=True)
class CacheConfig:
    """Artifact cache configuration."""

    enabled: bool
    directory: Path
    ttl_days: float

    @property
    def index_path(self) -> Path:
        return self.directory / "index.json"

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.ttl_days)


@dataclass(frozen=True)
class ElevenLabsConfig:
    """Primary provider configuration."""

    voice: str = "josh"
    model: str = "eleven_multilingual_v2"
    output_format: str = "mp3_44100_128"
    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True
    timeout_seconds: float = 60.0


@dataclass(frozen=True)
class FallbackConfig:
    """Fallback edge-tts configuration."""

    enabled: bool = True
    voice: str = "es-MX-JorgeNeural"
    rate: str = "+0%"
    pitch: str = "+0Hz"
    timeout_seconds: float = 120.0
    executable: str = "edge-tts"


@dataclass(frozen=True)
class RetryConfig:
    """Backoff applied around each primary provider call."""

    max_attempts: int = 3
    delay_seconds: float = 1.0
    backoff_multiplier: float = 2.0


@dataclass(frozen=True)
class NarrateConfig:
    """Top-level narrate configuration."""

    quota: QuotaConfig
    cache: CacheConfig
    elevenlabs: ElevenLabsConfig = field(default_factory=ElevenLabsConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    api_key: str | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)


_cached_config: NarrateConfig | None = None


def generate_config() -> Path:
    """Generate default config file at ~/.config/narrate/config.toml."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(DEFAULT_CONFIG)
    return CONFIG_PATH


def _expand(path: str) -> Path:
    return Path(path).expanduser()


def parse_config(data: Mapping[str, Any]) -> NarrateConfig:
    """Build a NarrateConfig from parsed TOML data with env var overrides.

    Args:
        data: Mapping shaped like the config file

    Returns:
        Validated NarrateConfig

    Raises:
        ValueError: If required values are missing or out of range
    """
    quota = data.get("quota", {})
    cache = data.get("cache", {})
    eleven = data.get("elevenlabs", {})
    fallback = data.get("fallback", {})
    retry = data.get("retry", {})

    missing = []
    if "monthly_limit" not in quota:
        missing.append("quota.monthly_limit")
    if "warning_threshold" not in quota:
        missing.append("quota.warning_threshold")
    if "enabled" not in cache:
        missing.append("cache.enabled")
    if "directory" not in cache:
        missing.append("cache.directory")
    if "ttl_days" not in cache:
        missing.append("cache.ttl_days")

    if missing:
        raise ValueError(f"Missing required config values: {', '.join(missing)}")

    monthly_limit = int(os.getenv("NARRATE_MONTHLY_LIMIT", quota["monthly_limit"]))
    warning_threshold = int(quota["warning_threshold"])
    if monthly_limit < 0 or warning_threshold < 0:
        raise ValueError("quota limits must be non-negative")
    if warning_threshold > monthly_limit:
        raise ValueError(
            f"quota.warning_threshold ({warning_threshold}) must not exceed "
            f"quota.monthly_limit ({monthly_limit})"
        )

    ttl_days = float(cache["ttl_days"])
    if ttl_days <= 0:
        raise ValueError(f"cache.ttl_days must be positive, got {ttl_days}")

    max_attempts = int(retry.get("max_attempts", 3))
    if max_attempts < 1:
        raise ValueError(f"retry.max_attempts must be at least 1, got {max_attempts}")

    return NarrateConfig(
        quota=QuotaConfig(
            monthly_limit=monthly_limit,
            warning_threshold=warning_threshold,
            path=_expand(
                os.getenv(
                    "NARRATE_QUOTA_PATH",
                    quota.get("path", "~/.cache/narrate/quota.json"),
                )
            ),
        ),
        cache=CacheConfig(
            enabled=bool(cache["enabled"]),
            directory=_expand(os.getenv("NARRATE_CACHE_DIR", cache["directory"])),
            ttl_days=ttl_days,
        ),
        elevenlabs=ElevenLabsConfig(
            voice=os.getenv("ELEVENLABS_VOICE_ID", eleven.get("voice", "josh")),
            model=os.getenv(
                "ELEVENLABS_MODEL_ID", eleven.get("model", "eleven_multilingual_v2")
            ),
            output_format=eleven.get("output_format", "mp3_44100_128"),
            stability=float(eleven.get("stability", 0.5)),
            similarity_boost=float(eleven.get("similarity_boost", 0.75)),
            style=float(eleven.get("style", 0.0)),
            use_speaker_boost=bool(eleven.get("use_speaker_boost", True)),
            timeout_seconds=float(eleven.get("timeout_seconds", 60)),
        ),
        fallback=FallbackConfig(
            enabled=bool(fallback.get("enabled", True)),
            voice=os.getenv(
                "NARRATE_FALLBACK_VOICE", fallback.get("voice", "es-MX-JorgeNeural")
            ),
            rate=fallback.get("rate", "+0%"),
            pitch=fallback.get("pitch", "+0Hz"),
            timeout_seconds=float(fallback.get("timeout_seconds", 120)),
            executable=fallback.get("executable", "edge-tts"),
        ),
        retry=RetryConfig(
            max_attempts=max_attempts,
            delay_seconds=float(retry.get("delay_seconds", 1.0)),
            backoff_multiplier=float(retry.get("backoff_multiplier", 2.0)),
        ),
        api_key=os.getenv("ELEVENLABS_API_KEY") or None,
    )


def load_config(config_path: Path | None = None) -> NarrateConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Args:
        config_path: Alternate config file. Only the default path is cached.

    Returns:
        Loaded and validated NarrateConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if config_path is None and _cached_config is not None:
        return _cached_config

    path = config_path or CONFIG_PATH
    if not path.exists():
        if config_path is not None:
            print(f"Config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
        path = generate_config()
        print(
            f"No config found. Generated {path} — review and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    with open(path, "rb") as f:
        data = tomllib.load(f)

    try:
        config = parse_config(data)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        print(f"Edit {path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from None

    if config_path is None:
        _cached_config = config
    return config
