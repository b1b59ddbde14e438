"""One-time password verification for sensitive account changes."""

import hmac
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from gym_membership.domain.errors import (
    DuplicateIdentityError,
    InvalidCodeError,
    NoPendingRequestError,
    NotFoundError,
    OtpExpiredError,
    UpdateFailedError,
)
from gym_membership.domain.models import OwnerRecord
from gym_membership.domain.otp import OtpRecord, PendingChange
from gym_membership.services.auth import OwnerRepository
from gym_membership.services.cache import KeyValueStore
from gym_membership.services.messaging import MessageSender

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 600


def generate_code() -> str:
    """Return a uniformly random 6-digit code."""
    return str(secrets.randbelow(900_000) + 100_000)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _otp_key(owner_id: int) -> str:
    return f"otp:{owner_id}"


@dataclass
class OtpService:
    """Issues single-use codes and applies the change they authorize."""

    store: KeyValueStore
    owner_repository: OwnerRepository
    sender: MessageSender
    ttl_seconds: int = OTP_TTL_SECONDS
    clock: Callable[[], datetime] = _utcnow
    code_factory: Callable[[], str] = generate_code

    async def issue(self, owner_id: int, payload: PendingChange) -> None:
        """Store a fresh code for the owner and send it to their current phone.

        A new code replaces any pending one for the same owner.
        """
        owner = self.owner_repository.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("Gym owner not found")
        code = self.code_factory()
        record = OtpRecord(
            code=code,
            payload=payload,
            expires_at=self.clock() + timedelta(seconds=self.ttl_seconds),
        )
        await self.store.set(
            _otp_key(owner_id), record.model_dump_json(), self.ttl_seconds
        )
        await self.sender.send(
            owner.phone_number, _code_message(code, self.ttl_seconds)
        )
        logger.info("Issued verification code", extra={"owner_id": owner_id})

    async def validate(self, owner_id: int, submitted_code: str) -> OwnerRecord:
        """Redeem a code, apply its pending change and return the updated owner."""
        key = _otp_key(owner_id)
        record = await self._load(key)
        if record is None:
            raise NoPendingRequestError("No pending verification request")
        if self.clock() >= record.expires_at:
            await self.store.delete(key)
            raise OtpExpiredError("Verification code has expired")
        if not hmac.compare_digest(
            record.code.encode("utf-8"), submitted_code.encode("utf-8")
        ):
            raise InvalidCodeError("Invalid verification code")
        change = record.payload
        if change.target == "phone_number":
            holder = self.owner_repository.get_by_phone(change.new_value)
            if holder is not None and holder.id != owner_id:
                raise DuplicateIdentityError(
                    "Phone number is already registered to another account"
                )
        if not await self.store.delete(key):
            raise NoPendingRequestError("No pending verification request")

        try:
            updated = self.owner_repository.update_owner(
                owner_id, {change.target: change.new_value}
            )
        except Exception as exc:
            logger.exception(
                "Failed to apply verified change", extra={"owner_id": owner_id}
            )
            await self._restore(key, record)
            raise UpdateFailedError(
                "Could not apply the change, please try again"
            ) from exc
        try:
            await self.sender.send(
                updated.phone_number, _confirmation_message(change)
            )
        except Exception:
            logger.exception(
                "Failed to send change confirmation", extra={"owner_id": owner_id}
            )
        return updated

    async def _restore(self, key: str, record: OtpRecord) -> None:
        """Put a redeemed record back so the owner can retry with the same code."""
        remaining = int((record.expires_at - self.clock()).total_seconds())
        await self.store.set(key, record.model_dump_json(), max(remaining, 1))

    async def _load(self, key: str) -> OtpRecord | None:
        raw = await self.store.get(key)
        if raw is None:
            return None
        try:
            return OtpRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable verification record")
            await self.store.delete(key)
            return None


def _code_message(code: str, ttl_seconds: int) -> str:
    minutes = max(ttl_seconds // 60, 1)
    return (
        f"Your verification code is {code}. "
        f"It expires in {minutes} minutes. Do not share it with anyone."
    )


def _confirmation_message(change: PendingChange) -> str:
    label = change.target.replace("_", " ")
    return f"Your {label} has been updated to {change.new_value}."
