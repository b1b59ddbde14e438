"""Owner account changes gated by OTP verification."""

from dataclasses import dataclass

from gym_membership.domain.errors import DuplicateIdentityError, ValidationFailedError
from gym_membership.domain.models import OwnerRecord
from gym_membership.domain.otp import PendingChange
from gym_membership.services.auth import OwnerRepository
from gym_membership.services.otp import OtpService

MIN_PHONE_DIGITS = 10


@dataclass
class AccountService:
    """Coordinates phone number changes for gym owners."""

    owner_repository: OwnerRepository
    otp_service: OtpService

    async def request_phone_change(self, owner_id: int, new_phone: str) -> None:
        """Check the new number is free and send a code to the current one."""
        phone_number = new_phone.strip()
        if not phone_number.isdigit() or len(phone_number) < MIN_PHONE_DIGITS:
            raise ValidationFailedError("A valid phone number is required")
        existing = self.owner_repository.get_by_phone(phone_number)
        if existing is not None:
            if existing.id != owner_id:
                raise DuplicateIdentityError(
                    "Phone number is already registered to another account"
                )
            raise ValidationFailedError("This is already your phone number")
        await self.otp_service.issue(
            owner_id, PendingChange(target="phone_number", new_value=phone_number)
        )

    async def confirm_phone_change(self, owner_id: int, code: str) -> OwnerRecord:
        """Redeem the code and return the owner with the new number."""
        return await self.otp_service.validate(owner_id, code)
