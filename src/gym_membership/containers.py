"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from gym_membership.adapters.file_credential_store import FileCredentialStore
from gym_membership.adapters.qr_codes import print_qr_to_terminal
from gym_membership.adapters.redis_key_value_store import RedisKeyValueStore
from gym_membership.adapters.redis_rate_limiter import RedisRateLimiter
from gym_membership.adapters.supabase_customer_repository import (
    SupabaseCustomerRepository,
)
from gym_membership.adapters.supabase_membership_repository import (
    SupabaseMembershipRepository,
)
from gym_membership.adapters.supabase_owner_repository import SupabaseOwnerRepository
from gym_membership.adapters.whatsapp_gateway_client import HttpxWhatsAppGateway
from gym_membership.config import Settings
from gym_membership.services.accounts import AccountService
from gym_membership.services.auth import AuthService, OwnerRepository
from gym_membership.services.cache import InMemoryKeyValueStore, KeyValueStore
from gym_membership.services.customers import CustomerService
from gym_membership.services.memberships import MembershipService
from gym_membership.services.messaging import RetryPolicy, SessionManager
from gym_membership.services.notifications import NotificationService
from gym_membership.services.otp import OtpService
from gym_membership.services.rate_limit import InMemoryRateLimiter, RateLimiter
from gym_membership.services.revenue import RevenueService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    owner_repository: OwnerRepository
    session_manager: SessionManager
    auth_service: AuthService
    customer_service: CustomerService
    membership_service: MembershipService
    notification_service: NotificationService
    account_service: AccountService
    revenue_service: RevenueService
    rate_limiter: RateLimiter
    close_resources: Callable[[], Awaitable[None]]


def build_retry_policy(settings: Settings) -> RetryPolicy:
    """Build the reconnect policy from settings."""
    return RetryPolicy(
        base_delay_seconds=settings.reconnect_delay_seconds,
        multiplier=settings.reconnect_backoff_multiplier,
        max_delay_seconds=settings.reconnect_max_delay_seconds,
        max_attempts=settings.reconnect_max_attempts,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    owner_repository = SupabaseOwnerRepository(supabase_client)
    customer_repository = SupabaseCustomerRepository(supabase_client)
    membership_repository = SupabaseMembershipRepository(supabase_client)

    store: KeyValueStore
    rate_limiter: RateLimiter
    redis_store: RedisKeyValueStore | None = None
    if resolved_settings.redis_url:
        redis_store = RedisKeyValueStore.from_url(resolved_settings.redis_url)
        store = redis_store
        rate_limiter = RedisRateLimiter(redis_store.client)
    else:
        store = InMemoryKeyValueStore()
        rate_limiter = InMemoryRateLimiter()

    gateway = HttpxWhatsAppGateway.create(
        base_url=resolved_settings.whatsapp_gateway_url,
        session_name=resolved_settings.whatsapp_session_name,
    )
    session_manager = SessionManager(
        transport=gateway,
        credential_store=FileCredentialStore(Path(resolved_settings.whatsapp_auth_dir)),
        retry_policy=build_retry_policy(resolved_settings),
        country_code=resolved_settings.whatsapp_country_code,
        qr_renderer=(
            print_qr_to_terminal if resolved_settings.whatsapp_print_qr else None
        ),
    )
    notification_service = NotificationService(session_manager)
    otp_service = OtpService(
        store=store,
        owner_repository=owner_repository,
        sender=session_manager,
        ttl_seconds=resolved_settings.otp_ttl_seconds,
    )
    auth_service = AuthService(
        repository=owner_repository,
        jwt_secret=resolved_settings.jwt_secret,
        jwt_algorithm=resolved_settings.jwt_algorithm,
        token_ttl_hours=resolved_settings.jwt_expire_hours,
    )
    customer_service = CustomerService(
        repository=customer_repository,
        membership_repository=membership_repository,
    )
    membership_service = MembershipService(
        customer_repository=customer_repository,
        membership_repository=membership_repository,
        owner_repository=owner_repository,
        notifications=notification_service,
        billing_timezone=resolved_settings.billing_timezone,
    )
    account_service = AccountService(
        owner_repository=owner_repository, otp_service=otp_service
    )
    revenue_service = RevenueService(
        repository=membership_repository,
        billing_timezone=resolved_settings.billing_timezone,
    )

    async def close_resources() -> None:
        await session_manager.close()
        await gateway.close()
        if redis_store is not None:
            await redis_store.close()

    return AppContainer(
        settings=resolved_settings,
        owner_repository=owner_repository,
        session_manager=session_manager,
        auth_service=auth_service,
        customer_service=customer_service,
        membership_service=membership_service,
        notification_service=notification_service,
        account_service=account_service,
        revenue_service=revenue_service,
        rate_limiter=rate_limiter,
        close_resources=close_resources,
    )
