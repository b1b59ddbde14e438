"""Lifecycle manager for the outbound WhatsApp session."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from gym_membership.domain.errors import NotInitializedError, TransportClosedError
from gym_membership.domain.messaging import (
    ConnectionClosed,
    ConnectionOpened,
    CredentialsRotated,
    LoginChallenge,
    SessionEvent,
    SessionState,
    to_whatsapp_address,
)

logger = logging.getLogger(__name__)


class MessagingConnection(Protocol):
    """A live connection to the messaging transport."""

    def events(self) -> AsyncGenerator[SessionEvent, None]:
        """Yield transport events.

        The next event is only requested once the consumer resumes iteration,
        so an event counts as acknowledged after its handler returned.
        """

    async def send_message(self, address: str, text: str) -> None:
        """Send a text message to a fully qualified address."""

    async def close(self) -> None:
        """Close the connection."""


class MessagingTransport(Protocol):
    """Factory for messaging connections."""

    async def connect(
        self, credentials: dict[str, object] | None
    ) -> MessagingConnection:
        """Open a connection, starting a QR login when credentials are missing."""


class CredentialStore(Protocol):
    """Durable storage for the session credential blob."""

    def load(self) -> dict[str, object] | None:
        """Return stored credentials, if any."""

    def save(self, credentials: dict[str, object]) -> None:
        """Persist credentials before returning."""

    def clear(self) -> None:
        """Forget stored credentials."""


class MessageSender(Protocol):
    """Anything that can deliver a text message to a phone number."""

    async def send(self, recipient: str, message: str) -> None:
        """Send a message to a raw phone number or WhatsApp address."""


@dataclass(frozen=True)
class RetryPolicy:
    """Delay schedule for reconnect attempts."""

    base_delay_seconds: float = 3.0
    multiplier: float = 1.0
    max_delay_seconds: float | None = None
    max_attempts: int | None = None

    def delay_for(self, attempt: int) -> float | None:
        """Return the wait before the 1-based attempt, or None to give up."""
        if self.max_attempts is not None and attempt > self.max_attempts:
            return None
        delay = self.base_delay_seconds * self.multiplier ** (attempt - 1)
        if self.max_delay_seconds is not None:
            delay = min(delay, self.max_delay_seconds)
        return delay


@dataclass
class SessionManager:
    """Keeps exactly one WhatsApp connection alive, reconnecting on drops."""

    transport: MessagingTransport
    credential_store: CredentialStore
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    country_code: str = "91"
    qr_renderer: Callable[[str], None] | None = None
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    state: SessionState = SessionState.DISCONNECTED
    latest_qr: str | None = None
    _connection: MessagingConnection | None = field(default=None, init=False)
    _listener: asyncio.Task[None] | None = field(default=None, init=False)
    _reconnect: asyncio.Task[None] | None = field(default=None, init=False)
    _attempt: int = field(default=0, init=False)

    @property
    def listener(self) -> asyncio.Task[None] | None:
        """Task consuming events of the current connection."""
        return self._listener

    @property
    def pending_reconnect(self) -> asyncio.Task[None] | None:
        """Scheduled reconnect, if one is waiting or running."""
        return self._reconnect

    async def initialize(self) -> MessagingConnection:
        """Open a connection with stored credentials and start listening."""
        current = asyncio.current_task()
        if self._reconnect is not None and self._reconnect is not current:
            self._reconnect.cancel()
            self._reconnect = None
        await self._stop_listener()

        credentials = self.credential_store.load()
        if credentials is None:
            logger.info("No stored WhatsApp credentials, starting QR login")
        self.state = SessionState.CONNECTING
        try:
            connection = await self.transport.connect(credentials)
        except Exception as exc:
            self.state = SessionState.DISCONNECTED
            logger.exception("Error connecting to WhatsApp")
            if self._reconnect is not current:
                self._schedule_reconnect()
            raise TransportClosedError("Could not connect to WhatsApp") from exc
        self._connection = connection
        self._listener = asyncio.create_task(self._listen(connection))
        return connection

    async def start(self) -> None:
        """Initialize at boot, retrying in the background if the transport is down."""
        with contextlib.suppress(TransportClosedError):
            await self.initialize()

    def get_client(self) -> MessagingConnection:
        """Return the current connection handle."""
        if self._connection is None:
            raise NotInitializedError("WhatsApp client is not initialized")
        return self._connection

    async def send(self, recipient: str, message: str) -> None:
        """Send a message through the open connection."""
        connection = self.get_client()
        if self.state is not SessionState.OPEN:
            raise TransportClosedError(f"WhatsApp session is {self.state}")
        address = to_whatsapp_address(recipient, self.country_code)
        await connection.send_message(address, message)

    async def close(self) -> None:
        """Stop listening, cancel reconnects and close the connection."""
        if self._reconnect is not None:
            self._reconnect.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect
            self._reconnect = None
        await self._stop_listener()
        if self._connection is not None:
            await self._connection.close()
        self.state = SessionState.DISCONNECTED

    async def _stop_listener(self) -> None:
        listener = self._listener
        self._listener = None
        if listener is None or listener.done():
            return
        listener.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await listener
        if self._connection is not None:
            try:
                await self._connection.close()
            except Exception:
                logger.exception("Failed to close previous WhatsApp connection")

    async def _listen(self, connection: MessagingConnection) -> None:
        try:
            async with contextlib.aclosing(connection.events()) as events:
                async for event in events:
                    if connection is not self._connection:
                        return
                    if await self._handle_event(event):
                        return
        except Exception:
            logger.exception("WhatsApp event stream failed")
        if connection is self._connection:
            self._handle_close(ConnectionClosed())

    async def _handle_event(self, event: SessionEvent) -> bool:
        """Apply one transport event; return true once the connection closed."""
        if isinstance(event, LoginChallenge):
            self.latest_qr = event.qr
            if self.qr_renderer is not None:
                self.qr_renderer(event.qr)
            logger.info("Scan the QR code with your WhatsApp app to log in")
            return False
        if isinstance(event, CredentialsRotated):
            await asyncio.to_thread(self.credential_store.save, event.credentials)
            return False
        if isinstance(event, ConnectionOpened):
            self.state = SessionState.OPEN
            self.latest_qr = None
            self._attempt = 0
            logger.info("Connected to WhatsApp")
            return False
        self._handle_close(event)
        return True

    def _handle_close(self, event: ConnectionClosed) -> None:
        if event.is_terminal:
            self.state = SessionState.CLOSED_TERMINAL
            self.credential_store.clear()
            logger.warning(
                "Logged out from WhatsApp. Scan a new QR code to reconnect"
            )
            return
        self.state = SessionState.DISCONNECTED
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._reconnect is not None and not self._reconnect.done():
            return
        self._attempt += 1
        delay = self.retry_policy.delay_for(self._attempt)
        if delay is None:
            logger.error(
                "Giving up on WhatsApp reconnect",
                extra={"attempts": self._attempt - 1},
            )
            return
        logger.warning(
            "WhatsApp connection closed, reconnecting in %.1f seconds", delay
        )
        self._reconnect = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self.sleep(delay)
        try:
            await self.initialize()
        except Exception:
            self._reconnect = None
            self._schedule_reconnect()
