"""Supabase-backed customer repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from gym_membership.domain.models import CustomerRecord
from gym_membership.services.customers import CustomerRepository

_CUSTOMER_COLUMNS = "id, gym_id, gym_owner_id, name, phone_number, status, end_date"


@dataclass
class SupabaseCustomerRepository(CustomerRepository):
    """Supabase implementation for gym customers."""

    client: Client

    def get_by_gym_id(self, owner_id: int, gym_id: str) -> CustomerRecord | None:
        """Return the owner's customer with an admission number, if present."""
        response = (
            self.client.table("customer")
            .select(_CUSTOMER_COLUMNS)
            .eq("gym_owner_id", owner_id)
            .eq("gym_id", gym_id)
            .limit(1)
            .execute()
        )
        return parse_customer_row(response.data[0]) if response.data else None

    def create_customer(
        self,
        owner_id: int,
        gym_id: str,
        name: str,
        phone_number: str,
        end_date: datetime,
    ) -> CustomerRecord:
        """Insert an active customer row and return it."""
        response = (
            self.client.table("customer")
            .insert(
                {
                    "gym_owner_id": owner_id,
                    "gym_id": gym_id,
                    "name": name,
                    "phone_number": phone_number,
                    "status": True,
                    "end_date": end_date.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create customer in Supabase")
        return parse_customer_row(response.data[0])

    def renew_customer(self, customer_id: int, end_date: datetime) -> CustomerRecord:
        """Reactivate a customer with a new end date."""
        response = (
            self.client.table("customer")
            .update({"status": True, "end_date": end_date.isoformat()})
            .eq("id", customer_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update customer in Supabase")
        return parse_customer_row(response.data[0])

    def list_customers(self, owner_id: int) -> list[CustomerRecord]:
        """Return all customers of an owner."""
        response = (
            self.client.table("customer")
            .select(_CUSTOMER_COLUMNS)
            .eq("gym_owner_id", owner_id)
            .order("id", desc=False)
            .execute()
        )
        return [parse_customer_row(row) for row in response.data or []]

    def list_expiring(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[CustomerRecord]:
        """Return active customers whose end date falls within the range."""
        response = (
            self.client.table("customer")
            .select(_CUSTOMER_COLUMNS)
            .eq("gym_owner_id", owner_id)
            .eq("status", True)
            .gte("end_date", start.isoformat())
            .lte("end_date", end.isoformat())
            .order("end_date", desc=False)
            .execute()
        )
        return [parse_customer_row(row) for row in response.data or []]


def parse_customer_row(row: dict[str, object]) -> CustomerRecord:
    """Build a customer record from a Supabase row."""
    end_date_raw = row.get("end_date")
    return CustomerRecord(
        id=int(row["id"]),
        gym_id=str(row["gym_id"]),
        gym_owner_id=int(row["gym_owner_id"]),
        name=str(row["name"]),
        phone_number=str(row["phone_number"]),
        status=bool(row.get("status", False)),
        end_date=(
            datetime.fromisoformat(end_date_raw)
            if isinstance(end_date_raw, str) and end_date_raw
            else None
        ),
    )
