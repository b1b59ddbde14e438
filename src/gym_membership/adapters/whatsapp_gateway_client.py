"""WhatsApp Web gateway client adapter."""

import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass

import httpx

from gym_membership.domain.messaging import (
    ConnectionClosed,
    ConnectionOpened,
    CredentialsRotated,
    LoginChallenge,
    SessionEvent,
)
from gym_membership.services.messaging import MessagingConnection, MessagingTransport

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404


@dataclass
class HttpxGatewayConnection(MessagingConnection):
    """One gateway session; events are long-polled with an ack cursor."""

    session_url: str
    http_client: httpx.AsyncClient
    poll_timeout_seconds: int = 25
    cursor: int = 0

    async def events(self) -> AsyncGenerator[SessionEvent, None]:
        """Yield gateway events, acknowledging each on the following poll.

        A close event is acknowledged before it is yielded, since the consumer
        stops iterating once it sees one.
        """
        while True:
            response = await self.http_client.get(
                f"{self.session_url}/events",
                params={"after": self.cursor, "timeout": self.poll_timeout_seconds},
                timeout=self.poll_timeout_seconds + 10,
            )
            response.raise_for_status()
            for raw in response.json().get("events", []):
                event = parse_gateway_event(raw)
                if isinstance(event, ConnectionClosed):
                    self.cursor = int(raw.get("id", self.cursor))
                if event is not None:
                    yield event
                self.cursor = int(raw.get("id", self.cursor))

    async def send_message(self, address: str, text: str) -> None:
        """Send a text message through the gateway session."""
        response = await self.http_client.post(
            f"{self.session_url}/messages",
            json={"to": address, "text": text},
            timeout=10,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Ask the gateway to drop the session socket."""
        response = await self.http_client.delete(self.session_url, timeout=10)
        if response.status_code != HTTP_NOT_FOUND:
            response.raise_for_status()


@dataclass
class HttpxWhatsAppGateway(MessagingTransport):
    """Messaging transport backed by a WhatsApp Web gateway over HTTP."""

    base_url: str
    session_name: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, session_name: str) -> "HttpxWhatsAppGateway":
        """Create a gateway client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            session_name=session_name,
            http_client=httpx.AsyncClient(),
        )

    async def connect(
        self, credentials: dict[str, object] | None
    ) -> HttpxGatewayConnection:
        """Open the named session, passing stored credentials if present."""
        session_url = f"{self.base_url}/sessions/{self.session_name}"
        response = await self.http_client.post(
            session_url, json={"credentials": credentials}, timeout=10
        )
        response.raise_for_status()
        return HttpxGatewayConnection(
            session_url=session_url, http_client=self.http_client
        )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def parse_gateway_event(raw: dict[str, object]) -> SessionEvent | None:
    """Translate a gateway event payload into a session event."""
    event_type = raw.get("type")
    if event_type == "qr":
        return LoginChallenge(qr=str(raw.get("qr", "")))
    if event_type == "creds.update":
        credentials = raw.get("credentials")
        return CredentialsRotated(
            credentials=credentials if isinstance(credentials, dict) else {}
        )
    if event_type == "open":
        return ConnectionOpened()
    if event_type == "close":
        status_code = raw.get("status_code")
        return ConnectionClosed(
            status_code=status_code if isinstance(status_code, int) else None
        )
    logger.debug("Ignoring gateway event", extra={"event_type": event_type})
    return None
