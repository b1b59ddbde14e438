"""Domain models for gym owners, customers and memberships."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class OwnerRecord:
    """Represents a gym owner account."""

    id: int
    name: str
    phone_number: str
    email: str
    gym_name: str
    password_hash: str


@dataclass(frozen=True)
class CustomerRecord:
    """Represents a gym member scoped to an owner."""

    id: int
    gym_id: str
    gym_owner_id: int
    name: str
    phone_number: str
    status: bool
    end_date: datetime | None


@dataclass(frozen=True)
class MembershipRecord:
    """A single membership payment transaction."""

    id: int
    customer_id: int
    transaction_date: datetime
    duration: int
    start_date: datetime
    bill_date: datetime
    payment_mode: str
    payment_details: str | None
    amount: float
    workout_type: str
    personal_training: bool
