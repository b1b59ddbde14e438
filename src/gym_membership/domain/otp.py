"""Models for one-time password records."""

from datetime import datetime

from pydantic import BaseModel


class PendingChange(BaseModel):
    """A contact change waiting for OTP confirmation."""

    target: str = "phone_number"
    new_value: str


class OtpRecord(BaseModel):
    """Stored OTP with the change it authorizes."""

    code: str
    payload: PendingChange
    expires_at: datetime
