"""Monthly usage accounting for the metered TTS provider."""

from .ledger import QuotaLedger
from .models import QuotaRecord, QuotaStatus

__all__ = ["QuotaLedger", "QuotaRecord", "QuotaStatus"]
