"""Domain models for the WhatsApp messaging session."""

from dataclasses import dataclass
from enum import StrEnum

LOGGED_OUT_STATUS_CODE = 401
WHATSAPP_SUFFIX = "@s.whatsapp.net"


class SessionState(StrEnum):
    """Lifecycle states of the messaging session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED_TERMINAL = "closed-terminal"


@dataclass(frozen=True)
class LoginChallenge:
    """The transport asks the operator to scan a QR code."""

    qr: str


@dataclass(frozen=True)
class CredentialsRotated:
    """The transport issued new session credentials."""

    credentials: dict[str, object]


@dataclass(frozen=True)
class ConnectionOpened:
    """The connection is ready to send messages."""


@dataclass(frozen=True)
class ConnectionClosed:
    """The connection closed, with the transport's status code if known."""

    status_code: int | None = None

    @property
    def is_terminal(self) -> bool:
        """Return true when the credentials were logged out."""
        return self.status_code == LOGGED_OUT_STATUS_CODE


SessionEvent = LoginChallenge | CredentialsRotated | ConnectionOpened | ConnectionClosed


def to_whatsapp_address(phone_number: str, country_code: str = "91") -> str:
    """Normalize a raw phone number into a WhatsApp address."""
    if WHATSAPP_SUFFIX in phone_number:
        return phone_number
    digits = "".join(char for char in phone_number if char.isdigit())
    return f"{country_code}{digits}{WHATSAPP_SUFFIX}"
