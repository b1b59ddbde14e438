"""Request models and response serializers for the HTTP API."""

from datetime import UTC, datetime

from pydantic import BaseModel

from gym_membership.domain.errors import ValidationFailedError
from gym_membership.domain.models import CustomerRecord, MembershipRecord, OwnerRecord
from gym_membership.domain.revenue import RevenueSummary
from gym_membership.services.memberships import MembershipRequest


class LoginRequest(BaseModel):
    """Owner login credentials."""

    phone_number: str | None = None
    password: str | None = None


class MembershipPayload(BaseModel):
    """Membership registration body; completeness is checked explicitly."""

    gym_id: str | int | None = None
    phone_number: str | None = None
    name: str | None = None
    duration: int | None = None
    start_date: datetime | None = None
    payment_mode: str | None = None
    amount: float | None = None
    workout_type: str | None = None
    personal_training: bool | None = None
    payment_details: str | None = None

    def to_request(self) -> MembershipRequest:
        """Return a service request or raise when a required field is missing."""
        if (
            self.gym_id in (None, "")
            or not self.phone_number
            or not self.name
            or not self.duration
            or self.start_date is None
            or not self.payment_mode
            or not self.amount
            or not self.workout_type
            or self.personal_training is None
        ):
            raise ValidationFailedError("Missing required fields")
        start_date = self.start_date
        if start_date.tzinfo is None:
            start_date = start_date.replace(tzinfo=UTC)
        return MembershipRequest(
            gym_id=str(self.gym_id),
            phone_number=self.phone_number,
            name=self.name,
            duration=self.duration,
            start_date=start_date,
            payment_mode=self.payment_mode,
            amount=self.amount,
            workout_type=self.workout_type,
            personal_training=self.personal_training,
            payment_details=self.payment_details or None,
        )


class PhoneChangeRequest(BaseModel):
    """New phone number awaiting verification."""

    phone_number: str


class PhoneVerifyRequest(BaseModel):
    """OTP submitted to confirm a phone change."""

    code: str


class PasswordChangeRequest(BaseModel):
    """Current and new owner passwords."""

    current_password: str
    new_password: str


def serialize_owner(owner: OwnerRecord) -> dict[str, object]:
    return {
        "id": owner.id,
        "name": owner.name,
        "phone_number": owner.phone_number,
        "email": owner.email,
        "gym_name": owner.gym_name,
    }


def serialize_customer(customer: CustomerRecord) -> dict[str, object]:
    return {
        "id": customer.id,
        "gym_id": customer.gym_id,
        "gym_owner_id": customer.gym_owner_id,
        "name": customer.name,
        "phone_number": customer.phone_number,
        "status": customer.status,
        "end_date": customer.end_date.isoformat() if customer.end_date else None,
    }


def serialize_membership(membership: MembershipRecord) -> dict[str, object]:
    return {
        "id": membership.id,
        "customer_id": membership.customer_id,
        "transaction_date": membership.transaction_date.isoformat(),
        "duration": membership.duration,
        "start_date": membership.start_date.isoformat(),
        "bill_date": membership.bill_date.isoformat(),
        "payment_mode": membership.payment_mode,
        "payment_details": membership.payment_details,
        "amount": membership.amount,
        "workout_type": membership.workout_type,
        "personal_training": membership.personal_training,
    }


def serialize_revenue(summary: RevenueSummary) -> dict[str, object]:
    return {
        "start": summary.start.isoformat(),
        "end": summary.end.isoformat(),
        "total_amount": summary.total_amount,
        "transaction_count": summary.transaction_count,
        "by_payment_mode": summary.by_payment_mode,
        "by_month": summary.by_month,
    }
