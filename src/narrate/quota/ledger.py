"""JSON-file quota ledger with calendar-month rollover."""

import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..clock import parse_timestamp, same_month
from .models import QuotaRecord, QuotaStatus

logger = logging.getLogger(__name__)


class QuotaLedger:
    """Tracks characters sent to the metered provider this month.

    The record lives in a small JSON document ``{"used": int, "lastReset":
    ISO-8601}``. Every read checks whether ``lastReset`` falls in an earlier
    calendar month and, if so, zeroes and persists the record before
    returning it. A missing or unreadable document counts as zero usage.

    The ledger records actual consumption; it never refuses a charge. The
    orchestrator checks ``status().exceeded`` before choosing the primary
    provider.
    """

    def __init__(
        self,
        path: Path,
        monthly_limit: int,
        warning_threshold: int,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the ledger.

        Args:
            path: Location of the quota JSON document
            monthly_limit: Characters allowed per calendar month
            warning_threshold: Usage at which near_limit turns on
            clock: Source of the current time
        """
        self.path = Path(path)
        self.monthly_limit = monthly_limit
        self.warning_threshold = warning_threshold
        self._clock = clock

    def load(self) -> QuotaRecord:
        """Read the current record, rolling it over if the month changed."""
        now = self._clock()
        record = self._read()
        if record is None:
            return QuotaRecord(used=0, last_reset=now)

        if not same_month(record.last_reset, now):
            logger.info(
                f"Quota period rolled over (last reset {record.last_reset.isoformat()}, "
                f"{record.used} chars discarded)"
            )
            record = QuotaRecord(used=0, last_reset=now)
            self._write(record)

        return record

    def status(self) -> QuotaStatus:
        record = self.load()
        limit = self.monthly_limit
        percent_used = (record.used / limit * 100) if limit > 0 else 100.0

        return QuotaStatus(
            used=record.used,
            limit=limit,
            remaining=max(0, limit - record.used),
            percent_used=percent_used,
            near_limit=record.used >= self.warning_threshold,
            exceeded=record.used >= limit,
            last_reset=record.last_reset,
        )

    def charge(self, units: int) -> QuotaRecord:
        """Add ``units`` to this period's usage and persist.

        Raises:
            ValueError: If units is negative
            OSError: If the ledger cannot be written
        """
        if units < 0:
            raise ValueError(f"units must be non-negative, got {units}")

        record = self.load()
        record.used += units
        self._write(record)

        logger.info(f"Quota updated: {record.used}/{self.monthly_limit} chars")
        return record

    def reset(self) -> QuotaRecord:
        record = QuotaRecord(used=0, last_reset=self._clock())
        self._write(record)
        logger.info("Monthly quota reset")
        return record

    def _read(self) -> QuotaRecord | None:
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return QuotaRecord(
                used=int(data["used"]),
                last_reset=parse_timestamp(data["lastReset"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable quota file {self.path}: {e}")
            return None

    def _write(self, record: QuotaRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"used": record.used, "lastReset": record.last_reset.isoformat()}
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
