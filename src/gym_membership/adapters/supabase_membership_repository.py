"""Supabase-backed membership transaction repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from gym_membership.domain.models import MembershipRecord
from gym_membership.services.memberships import MembershipRepository

_MEMBERSHIP_COLUMNS = (
    "id, customer_id, transaction_date, duration, start_date, bill_date, "
    "payment_mode, payment_details, amount, workout_type, personal_training"
)


@dataclass
class SupabaseMembershipRepository(MembershipRepository):
    """Supabase implementation for membership transactions."""

    client: Client

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
        """Insert a membership row and return it."""
        response = (
            self.client.table("membership")
            .insert(
                {
                    "customer_id": customer_id,
                    "duration": duration,
                    "start_date": start_date.isoformat(),
                    "bill_date": bill_date.isoformat(),
                    "payment_mode": payment_mode,
                    "payment_details": payment_details,
                    "amount": amount,
                    "workout_type": workout_type,
                    "personal_training": personal_training,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create membership in Supabase")
        return parse_membership_row(response.data[0])

    def list_for_customer(self, customer_id: int) -> list[MembershipRecord]:
        """Return a customer's memberships, oldest first."""
        response = (
            self.client.table("membership")
            .select(_MEMBERSHIP_COLUMNS)
            .eq("customer_id", customer_id)
            .order("transaction_date", desc=False)
            .execute()
        )
        return [parse_membership_row(row) for row in response.data or []]

    def list_for_owner(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[MembershipRecord]:
        """Return memberships billed in the range for the owner's customers."""
        response = (
            self.client.table("membership")
            .select(f"{_MEMBERSHIP_COLUMNS}, customer!inner(gym_owner_id)")
            .eq("customer.gym_owner_id", owner_id)
            .gte("bill_date", start.isoformat())
            .lt("bill_date", end.isoformat())
            .order("bill_date", desc=False)
            .execute()
        )
        return [parse_membership_row(row) for row in response.data or []]


def parse_membership_row(row: dict[str, object]) -> MembershipRecord:
    """Build a membership record from a Supabase row."""
    return MembershipRecord(
        id=int(row["id"]),
        customer_id=int(row["customer_id"]),
        transaction_date=_parse_datetime(row.get("transaction_date")),
        duration=int(row["duration"]),
        start_date=_parse_datetime(row.get("start_date")),
        bill_date=_parse_datetime(row.get("bill_date")),
        payment_mode=str(row["payment_mode"]),
        payment_details=(
            str(row["payment_details"]) if row.get("payment_details") else None
        ),
        amount=float(row.get("amount", 0.0)),
        workout_type=str(row.get("workout_type", "")),
        personal_training=bool(row.get("personal_training", False)),
    )


def _parse_datetime(raw: object) -> datetime:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return datetime.min
