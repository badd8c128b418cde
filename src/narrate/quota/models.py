"""Data models for the quota ledger."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class QuotaRecord:
    """Usage persisted for the current billing period.

    Attributes:
        used: Characters consumed since last_reset
        last_reset: When the current period started
    """

    used: int
    last_reset: datetime


@dataclass(frozen=True)
class QuotaStatus:
    """Read-only view of the ledger against the configured limits."""

    used: int
    limit: int
    remaining: int
    percent_used: float
    near_limit: bool
    exceeded: bool
    last_reset: datetime
