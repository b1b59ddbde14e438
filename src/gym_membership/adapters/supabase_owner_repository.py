"""Supabase-backed gym owner repository."""

from dataclasses import dataclass

from supabase import Client

from gym_membership.domain.models import OwnerRecord
from gym_membership.services.auth import OwnerRepository

_OWNER_COLUMNS = "id, name, phone_number, email, gym_name, password"


@dataclass
class SupabaseOwnerRepository(OwnerRepository):
    """Supabase implementation for gym owner persistence."""

    client: Client

    def get_by_id(self, owner_id: int) -> OwnerRecord | None:
        """Return the owner with the given id, if present."""
        response = (
            self.client.table("gym_owner")
            .select(_OWNER_COLUMNS)
            .eq("id", owner_id)
            .limit(1)
            .execute()
        )
        return _parse_row(response.data[0]) if response.data else None

    def get_by_phone(self, phone_number: str) -> OwnerRecord | None:
        """Return the owner registered with the phone number, if present."""
        response = (
            self.client.table("gym_owner")
            .select(_OWNER_COLUMNS)
            .eq("phone_number", phone_number)
            .limit(1)
            .execute()
        )
        return _parse_row(response.data[0]) if response.data else None

    def update_owner(self, owner_id: int, values: dict[str, object]) -> OwnerRecord:
        """Update owner columns and return the updated row."""
        response = (
            self.client.table("gym_owner").update(values).eq("id", owner_id).execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update gym owner in Supabase")
        return _parse_row(response.data[0])


def _parse_row(row: dict[str, object]) -> OwnerRecord:
    return OwnerRecord(
        id=int(row["id"]),
        name=str(row["name"]),
        phone_number=str(row["phone_number"]),
        email=str(row.get("email") or ""),
        gym_name=str(row.get("gym_name") or ""),
        password_hash=str(row.get("password") or ""),
    )
