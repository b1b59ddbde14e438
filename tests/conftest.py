"""Shared test fixtures."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from gym_membership.config import Settings
from gym_membership.containers import AppContainer
from gym_membership.domain.messaging import SessionEvent
from gym_membership.domain.models import CustomerRecord, MembershipRecord, OwnerRecord
from gym_membership.services.accounts import AccountService
from gym_membership.services.auth import AuthService, OwnerRepository, hash_password
from gym_membership.services.cache import InMemoryKeyValueStore
from gym_membership.services.customers import CustomerRepository, CustomerService
from gym_membership.services.memberships import MembershipRepository, MembershipService
from gym_membership.services.messaging import (
    CredentialStore,
    MessageSender,
    MessagingConnection,
    MessagingTransport,
    RetryPolicy,
    SessionManager,
)
from gym_membership.services.notifications import NotificationService
from gym_membership.services.otp import OtpService
from gym_membership.services.rate_limit import InMemoryRateLimiter
from gym_membership.services.revenue import RevenueService

JWT_SECRET = "test-secret-that-is-long-enough-for-hs256"
OWNER_PASSWORD = "correctpass"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 4, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class InMemoryOwnerRepository(OwnerRepository):
    """In-memory gym owner repository for tests."""

    owners: dict[int, OwnerRecord] = field(default_factory=dict)

    def add(self, owner: OwnerRecord) -> OwnerRecord:
        self.owners[owner.id] = owner
        return owner

    def get_by_id(self, owner_id: int) -> OwnerRecord | None:
        return self.owners.get(owner_id)

    def get_by_phone(self, phone_number: str) -> OwnerRecord | None:
        for owner in self.owners.values():
            if owner.phone_number == phone_number:
                return owner
        return None

    def update_owner(self, owner_id: int, values: dict[str, object]) -> OwnerRecord:
        owner = self.owners[owner_id]
        changes = dict(values)
        if "password" in changes:
            changes["password_hash"] = changes.pop("password")
        updated = replace(owner, **changes)
        self.owners[owner_id] = updated
        return updated


@dataclass
class InMemoryCustomerRepository(CustomerRepository):
    """In-memory customer repository for tests."""

    customers: dict[int, CustomerRecord] = field(default_factory=dict)

    def get_by_gym_id(self, owner_id: int, gym_id: str) -> CustomerRecord | None:
        for customer in self.customers.values():
            if customer.gym_owner_id == owner_id and customer.gym_id == gym_id:
                return customer
        return None

    def create_customer(
        self,
        owner_id: int,
        gym_id: str,
        name: str,
        phone_number: str,
        end_date: datetime,
    ) -> CustomerRecord:
        customer = CustomerRecord(
            id=len(self.customers) + 1,
            gym_id=gym_id,
            gym_owner_id=owner_id,
            name=name,
            phone_number=phone_number,
            status=True,
            end_date=end_date,
        )
        self.customers[customer.id] = customer
        return customer

    def renew_customer(self, customer_id: int, end_date: datetime) -> CustomerRecord:
        updated = replace(self.customers[customer_id], status=True, end_date=end_date)
        self.customers[customer_id] = updated
        return updated

    def list_customers(self, owner_id: int) -> list[CustomerRecord]:
        return [c for c in self.customers.values() if c.gym_owner_id == owner_id]

    def list_expiring(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[CustomerRecord]:
        return [
            c
            for c in self.customers.values()
            if c.gym_owner_id == owner_id
            and c.status
            and c.end_date is not None
            and start <= c.end_date <= end
        ]


@dataclass
class InMemoryMembershipRepository(MembershipRepository):
    """In-memory membership repository for tests."""

    customers: InMemoryCustomerRepository
    memberships: dict[int, MembershipRecord] = field(default_factory=dict)

    def create_membership(  # noqa: PLR0913
        self,
        customer_id: int,
        duration: int,
        start_date: datetime,
        bill_date: datetime,
        payment_mode: str,
        payment_details: str | None,
        amount: float,
        workout_type: str,
        personal_training: bool,
    ) -> MembershipRecord:
        membership = MembershipRecord(
            id=len(self.memberships) + 1,
            customer_id=customer_id,
            transaction_date=bill_date,
            duration=duration,
            start_date=start_date,
            bill_date=bill_date,
            payment_mode=payment_mode,
            payment_details=payment_details,
            amount=amount,
            workout_type=workout_type,
            personal_training=personal_training,
        )
        self.memberships[membership.id] = membership
        return membership

    def list_for_customer(self, customer_id: int) -> list[MembershipRecord]:
        return [m for m in self.memberships.values() if m.customer_id == customer_id]

    def list_for_owner(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[MembershipRecord]:
        return [
            m
            for m in self.memberships.values()
            if self.customers.customers[m.customer_id].gym_owner_id == owner_id
            and start <= m.bill_date < end
        ]


@dataclass
class RecordingSender(MessageSender):
    """Message sender that records deliveries and can fail on demand."""

    sent: list[tuple[str, str]] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    async def send(self, recipient: str, message: str) -> None:
        if recipient in self.fail_for:
            raise RuntimeError(f"delivery to {recipient} failed")
        self.sent.append((recipient, message))


@dataclass
class InMemoryCredentialStore(CredentialStore):
    """Credential store keeping the blob in memory."""

    credentials: dict[str, object] | None = None
    saves: list[dict[str, object]] = field(default_factory=list)
    cleared: int = 0

    def load(self) -> dict[str, object] | None:
        return self.credentials

    def save(self, credentials: dict[str, object]) -> None:
        self.credentials = credentials
        self.saves.append(credentials)

    def clear(self) -> None:
        self.credentials = None
        self.cleared += 1


@dataclass
class FakeConnection(MessagingConnection):
    """Connection replaying scripted events, then idling until closed."""

    scripted: list[SessionEvent] = field(default_factory=list)
    sent: list[tuple[str, str]] = field(default_factory=list)
    closed: bool = False
    stream_closed: bool = False
    handled: list[SessionEvent] = field(default_factory=list)
    _idle: asyncio.Event | None = None

    async def events(self) -> AsyncGenerator[SessionEvent, None]:
        try:
            for event in self.scripted:
                yield event
                self.handled.append(event)
            self._idle = asyncio.Event()
            await self._idle.wait()
        finally:
            self.stream_closed = True

    async def send_message(self, address: str, text: str) -> None:
        self.sent.append((address, text))

    async def close(self) -> None:
        self.closed = True
        if self._idle is not None:
            self._idle.set()


@dataclass
class FakeTransport(MessagingTransport):
    """Transport handing out prepared connections in order."""

    connections: list[FakeConnection] = field(default_factory=list)
    connect_calls: list[dict[str, object] | None] = field(default_factory=list)
    failures: int = 0

    async def connect(
        self, credentials: dict[str, object] | None
    ) -> MessagingConnection:
        self.connect_calls.append(credentials)
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("gateway unavailable")
        if self.connections:
            return self.connections.pop(0)
        return FakeConnection()


@dataclass
class RecordingSleep:
    """Sleep replacement that records delays and returns immediately."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


async def drain() -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(10):
        await asyncio.sleep(0)


async def wait_for(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until the condition holds, for work handed to worker threads."""
    async with asyncio.timeout(timeout):
        while not condition():
            await asyncio.sleep(0.01)


def make_owner(owner_id: int = 1, phone_number: str = "9876543210") -> OwnerRecord:
    return OwnerRecord(
        id=owner_id,
        name="Ravi",
        phone_number=phone_number,
        email=f"owner{owner_id}@example.com",
        gym_name="Iron Temple",
        password_hash=hash_password(OWNER_PASSWORD),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        jwt_secret=JWT_SECRET,
        admin_token="admin-token",
        whatsapp_print_qr=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def owner_repository() -> InMemoryOwnerRepository:
    repository = InMemoryOwnerRepository()
    repository.add(make_owner())
    return repository


@pytest.fixture
def customer_repository() -> InMemoryCustomerRepository:
    return InMemoryCustomerRepository()


@pytest.fixture
def membership_repository(
    customer_repository: InMemoryCustomerRepository,
) -> InMemoryMembershipRepository:
    return InMemoryMembershipRepository(customers=customer_repository)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def otp_store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    clock: FakeClock,
    owner_repository: InMemoryOwnerRepository,
    customer_repository: InMemoryCustomerRepository,
    membership_repository: InMemoryMembershipRepository,
    otp_store: InMemoryKeyValueStore,
) -> AppContainer:
    session_manager = SessionManager(
        transport=FakeTransport(),
        credential_store=InMemoryCredentialStore(),
        retry_policy=RetryPolicy(),
        sleep=RecordingSleep(),
    )
    notification_service = NotificationService(session_manager)
    otp_service = OtpService(
        store=otp_store,
        owner_repository=owner_repository,
        sender=session_manager,
        clock=clock,
        code_factory=lambda: "123456",
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        owner_repository=owner_repository,
        session_manager=session_manager,
        auth_service=AuthService(owner_repository, jwt_secret=JWT_SECRET),
        customer_service=CustomerService(
            repository=customer_repository,
            membership_repository=membership_repository,
            clock=clock,
        ),
        membership_service=MembershipService(
            customer_repository=customer_repository,
            membership_repository=membership_repository,
            owner_repository=owner_repository,
            notifications=notification_service,
            clock=clock,
        ),
        notification_service=notification_service,
        account_service=AccountService(
            owner_repository=owner_repository, otp_service=otp_service
        ),
        revenue_service=RevenueService(membership_repository, clock=clock),
        rate_limiter=InMemoryRateLimiter(clock=clock),
        close_resources=close_resources,
    )
