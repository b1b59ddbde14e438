"""Customer lookups for gym owners."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol

from gym_membership.domain.errors import NotFoundError
from gym_membership.domain.models import CustomerRecord, MembershipRecord

if TYPE_CHECKING:
    from gym_membership.services.memberships import MembershipRepository

DEFAULT_EXPIRY_DAYS = 7


class CustomerRepository(Protocol):
    """Persistence interface for gym customers."""

    def get_by_gym_id(self, owner_id: int, gym_id: str) -> CustomerRecord | None:
        """Return the owner's customer with an admission number, if present."""

    def create_customer(
        self,
        owner_id: int,
        gym_id: str,
        name: str,
        phone_number: str,
        end_date: datetime,
    ) -> CustomerRecord:
        """Create an active customer and return it."""

    def renew_customer(self, customer_id: int, end_date: datetime) -> CustomerRecord:
        """Mark a customer active with a new end date."""

    def list_customers(self, owner_id: int) -> list[CustomerRecord]:
        """Return all customers of an owner."""

    def list_expiring(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[CustomerRecord]:
        """Return active customers whose membership ends in the range."""


@dataclass
class CustomerService:
    """Read-side service for customer profiles."""

    repository: CustomerRepository
    membership_repository: "MembershipRepository"
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)

    def get_customer(self, owner_id: int, gym_id: str) -> CustomerRecord:
        """Return a customer or raise when it does not exist."""
        customer = self.repository.get_by_gym_id(owner_id, gym_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    def get_profile(
        self, owner_id: int, gym_id: str
    ) -> tuple[CustomerRecord, list[MembershipRecord]]:
        """Return a customer with their membership transactions."""
        customer = self.get_customer(owner_id, gym_id)
        return customer, self.membership_repository.list_for_customer(customer.id)

    def list_customers(self, owner_id: int) -> list[CustomerRecord]:
        """Return every customer of the owner."""
        return self.repository.list_customers(owner_id)

    def list_expiring(self, owner_id: int, days: int) -> list[CustomerRecord]:
        """Return active customers expiring within the next days."""
        if days <= 0:
            days = DEFAULT_EXPIRY_DAYS
        now = self.clock()
        return self.repository.list_expiring(owner_id, now, now + timedelta(days=days))
