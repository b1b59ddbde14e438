"""Revenue reporting over membership transactions."""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from gym_membership.domain.errors import ValidationFailedError
from gym_membership.domain.revenue import RevenueSummary
from gym_membership.services.memberships import MembershipRepository, add_months


@dataclass
class RevenueService:
    """Aggregates billed amounts for an owner."""

    repository: MembershipRepository
    billing_timezone: str = "Asia/Kolkata"
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)

    def summarize(
        self,
        owner_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> RevenueSummary:
        """Return totals for the range, defaulting to the current billing month."""
        if start is None or end is None:
            month_start, month_end = self._current_month()
            start = start or month_start
            end = end or month_end
        if end <= start:
            raise ValidationFailedError("end must be after start")

        memberships = self.repository.list_for_owner(owner_id, start, end)
        by_mode: dict[str, float] = defaultdict(float)
        by_month: dict[str, float] = defaultdict(float)
        tz = ZoneInfo(self.billing_timezone)
        for membership in memberships:
            by_mode[membership.payment_mode.lower()] += membership.amount
            month = membership.bill_date.astimezone(tz).strftime("%Y-%m")
            by_month[month] += membership.amount
        return RevenueSummary(
            start=start,
            end=end,
            total_amount=sum(membership.amount for membership in memberships),
            transaction_count=len(memberships),
            by_payment_mode=dict(by_mode),
            by_month=dict(sorted(by_month.items())),
        )

    def _current_month(self) -> tuple[datetime, datetime]:
        now = self.clock().astimezone(ZoneInfo(self.billing_timezone))
        start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return start, add_months(start, 1)
