"""Domain models for revenue reporting."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RevenueSummary:
    """Aggregated membership revenue over a period."""

    start: datetime
    end: datetime
    total_amount: float
    transaction_count: int
    by_payment_mode: dict[str, float]
    by_month: dict[str, float]
