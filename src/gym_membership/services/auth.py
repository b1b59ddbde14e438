"""Owner authentication and credential management."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

import bcrypt
import jwt

from gym_membership.domain.errors import (
    InvalidCredentialsError,
    NotFoundError,
    ValidationFailedError,
)
from gym_membership.domain.models import OwnerRecord

MIN_PASSWORD_LENGTH = 6
# bcrypt only accepts this many input bytes
MAX_PASSWORD_BYTES = 72


class OwnerRepository(Protocol):
    """Persistence interface for gym owner accounts."""

    def get_by_id(self, owner_id: int) -> OwnerRecord | None:
        """Return the owner with the given id, if present."""

    def get_by_phone(self, phone_number: str) -> OwnerRecord | None:
        """Return the owner registered with a phone number, if present."""

    def update_owner(self, owner_id: int, values: dict[str, object]) -> OwnerRecord:
        """Update owner columns and return the updated record."""


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@dataclass
class AuthService:
    """Issues and verifies owner access tokens."""

    repository: OwnerRepository
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 168

    def login(self, phone_number: str, password: str) -> str:
        """Return a bearer token for valid owner credentials."""
        owner = self.repository.get_by_phone(phone_number)
        if owner is None or not verify_password(password, owner.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        return self.create_token(owner.id)

    def create_token(self, owner_id: int) -> str:
        """Create a signed token carrying the owner id."""
        now = datetime.now(tz=UTC)
        payload = {
            "id": owner_id,
            "iat": now,
            "exp": now + timedelta(hours=self.token_ttl_hours),
        }
        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def decode_token(self, token: str) -> int:
        """Return the owner id from a valid token."""
        try:
            payload = jwt.decode(
                token, self.jwt_secret, algorithms=[self.jwt_algorithm]
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidCredentialsError("Invalid or expired token") from exc
        owner_id = payload.get("id")
        if not isinstance(owner_id, int):
            raise InvalidCredentialsError("Invalid or expired token")
        return owner_id

    def change_password(
        self, owner_id: int, current_password: str, new_password: str
    ) -> None:
        """Replace the owner's password after checking the current one."""
        owner = self.repository.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("Gym owner not found")
        if not verify_password(current_password, owner.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailedError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if len(new_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationFailedError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
            )
        self.repository.update_owner(owner_id, {"password": hash_password(new_password)})
