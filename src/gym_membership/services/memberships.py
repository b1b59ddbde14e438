"""Membership registration and renewal."""

import calendar
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from gym_membership.domain.errors import NotFoundError, ValidationFailedError
from gym_membership.domain.models import CustomerRecord, MembershipRecord
from gym_membership.services.auth import OwnerRepository
from gym_membership.services.customers import CustomerRepository
from gym_membership.services.notifications import NotificationService

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


class MembershipRepository(Protocol):
    """Persistence interface for membership transactions."""

    def create_membership(  # noqa: PLR0913
        self,
        customer_id: int,
        duration: int,
        start_date: datetime,
        bill_date: datetime,
        payment_mode: str,
        payment_details: str | None,
        amount: float,
        workout_type: str,
        personal_training: bool,
    ) -> MembershipRecord:
        """Create a membership transaction and return it."""

    def list_for_customer(self, customer_id: int) -> list[MembershipRecord]:
        """Return all memberships for a customer, oldest first."""

    def list_for_owner(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[MembershipRecord]:
        """Return memberships of the owner's customers billed in a range."""


@dataclass(frozen=True)
class MembershipRequest:
    """Validated input for registering a membership."""

    gym_id: str
    phone_number: str
    name: str
    duration: int
    start_date: datetime
    payment_mode: str
    amount: float
    workout_type: str
    personal_training: bool
    payment_details: str | None = None


def add_months(value: datetime, months: int) -> datetime:
    """Shift a datetime by whole months, clamping the day to the month end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // MONTHS_PER_YEAR
    month = month_index % MONTHS_PER_YEAR + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


@dataclass
class MembershipService:
    """Records memberships and keeps customer status in sync."""

    customer_repository: CustomerRepository
    membership_repository: MembershipRepository
    owner_repository: OwnerRepository
    notifications: NotificationService
    billing_timezone: str = "Asia/Kolkata"
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)

    async def create_membership(
        self, owner_id: int, request: MembershipRequest
    ) -> tuple[CustomerRecord, MembershipRecord]:
        """Create or renew the customer, record the payment and notify."""
        if request.duration <= 0:
            raise ValidationFailedError("Duration must be a positive number of months")
        if request.amount <= 0:
            raise ValidationFailedError("Amount must be positive")
        if request.payment_mode.lower() != "cash" and not request.payment_details:
            raise ValidationFailedError(
                "Payment details required for UPI/Card payments"
            )
        owner = self.owner_repository.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("Gym owner not found")

        end_date = add_months(request.start_date, request.duration)
        bill_date = self.clock().astimezone(ZoneInfo(self.billing_timezone))
        customer = self.customer_repository.get_by_gym_id(owner_id, request.gym_id)
        if customer is None:
            customer = self.customer_repository.create_customer(
                owner_id=owner_id,
                gym_id=request.gym_id,
                name=request.name,
                phone_number=request.phone_number,
                end_date=end_date,
            )
        else:
            customer = self.customer_repository.renew_customer(customer.id, end_date)

        membership = self.membership_repository.create_membership(
            customer_id=customer.id,
            duration=request.duration,
            start_date=request.start_date,
            bill_date=bill_date,
            payment_mode=request.payment_mode,
            payment_details=request.payment_details,
            amount=request.amount,
            workout_type=request.workout_type,
            personal_training=request.personal_training,
        )
        logger.info(
            "Recorded membership",
            extra={"owner_id": owner_id, "customer_id": customer.id},
        )
        await self.notifications.membership_created(owner, customer, membership)
        return customer, membership
