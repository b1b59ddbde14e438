"""Tests for OTP issuance and redemption."""

import asyncio
from dataclasses import dataclass
from datetime import timedelta

import pytest

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
from gym_membership.services.cache import InMemoryKeyValueStore
from gym_membership.services.otp import OtpService, generate_code
from tests.conftest import (
    FakeClock,
    InMemoryOwnerRepository,
    RecordingSender,
    make_owner,
)


def _service(
    clock: FakeClock,
    codes: list[str] | None = None,
    repository: InMemoryOwnerRepository | None = None,
) -> tuple[OtpService, InMemoryOwnerRepository, RecordingSender, InMemoryKeyValueStore]:
    repository = repository or InMemoryOwnerRepository()
    repository.add(make_owner(owner_id=42, phone_number="9876543210"))
    sender = RecordingSender()
    store = InMemoryKeyValueStore(clock=clock)
    queue = list(codes or ["482913"])
    service = OtpService(
        store=store,
        owner_repository=repository,
        sender=sender,
        clock=clock,
        code_factory=lambda: queue.pop(0),
    )
    return service, repository, sender, store


@dataclass
class FlakyOwnerRepository(InMemoryOwnerRepository):
    failures: int = 1

    def update_owner(self, owner_id: int, values: dict[str, object]) -> OwnerRecord:
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("database unavailable")
        return super().update_owner(owner_id, values)


def _phone_change(value: str = "9998887777") -> PendingChange:
    return PendingChange(target="phone_number", new_value=value)


def test_generate_code_is_six_digits() -> None:
    codes = {generate_code() for _ in range(200)}

    assert all(len(code) == 6 and code.isdigit() for code in codes)
    assert all(not code.startswith("0") for code in codes)


def test_issue_sends_code_to_current_phone(clock: FakeClock) -> None:
    service, _, sender, store = _service(clock)

    asyncio.run(service.issue(42, _phone_change()))

    assert len(sender.sent) == 1
    recipient, message = sender.sent[0]
    assert recipient == "9876543210"
    assert "482913" in message
    assert "10 minutes" in message
    raw = asyncio.run(store.get("otp:42"))
    assert raw is not None
    assert OtpRecord.model_validate_json(raw).payload.new_value == "9998887777"


def test_issue_for_unknown_owner_raises(clock: FakeClock) -> None:
    service, _, sender, _ = _service(clock)

    with pytest.raises(NotFoundError):
        asyncio.run(service.issue(7, _phone_change()))

    assert sender.sent == []


def test_validate_applies_change_and_confirms_to_new_number(clock: FakeClock) -> None:
    service, repository, sender, store = _service(clock)
    asyncio.run(service.issue(42, _phone_change()))

    updated = asyncio.run(service.validate(42, "482913"))

    assert asyncio.run(store.get("otp:42")) is None
    assert updated.phone_number == "9998887777"
    assert repository.owners[42].phone_number == "9998887777"
    assert sender.sent[-1][0] == "9998887777"
    assert "9998887777" in sender.sent[-1][1]


def test_code_is_single_use(clock: FakeClock) -> None:
    service, _, _, _ = _service(clock)
    asyncio.run(service.issue(42, _phone_change()))
    asyncio.run(service.validate(42, "482913"))

    with pytest.raises(NoPendingRequestError):
        asyncio.run(service.validate(42, "482913"))


def test_wrong_code_keeps_pending_request(clock: FakeClock) -> None:
    service, repository, _, _ = _service(clock)
    asyncio.run(service.issue(42, _phone_change()))

    with pytest.raises(InvalidCodeError):
        asyncio.run(service.validate(42, "000000"))

    assert repository.owners[42].phone_number == "9876543210"
    updated = asyncio.run(service.validate(42, "482913"))
    assert updated.phone_number == "9998887777"


def test_validate_without_request_raises(clock: FakeClock) -> None:
    service, _, _, _ = _service(clock)

    with pytest.raises(NoPendingRequestError):
        asyncio.run(service.validate(42, "482913"))


def test_code_expires_after_ttl(clock: FakeClock) -> None:
    service, repository, _, _ = _service(clock)
    asyncio.run(service.issue(42, _phone_change()))

    clock.advance(601)

    with pytest.raises(NoPendingRequestError):
        asyncio.run(service.validate(42, "482913"))
    assert repository.owners[42].phone_number == "9876543210"


def test_record_past_its_expiry_is_rejected_and_removed(clock: FakeClock) -> None:
    service, _, _, store = _service(clock)
    record = OtpRecord(
        code="482913",
        payload=_phone_change(),
        expires_at=clock() - timedelta(seconds=1),
    )
    asyncio.run(store.set("otp:42", record.model_dump_json(), 600))

    with pytest.raises(OtpExpiredError):
        asyncio.run(service.validate(42, "482913"))

    assert asyncio.run(store.get("otp:42")) is None


def test_reissue_replaces_previous_code(clock: FakeClock) -> None:
    service, _, _, _ = _service(clock, codes=["111111", "222222"])
    asyncio.run(service.issue(42, _phone_change("9998887777")))
    asyncio.run(service.issue(42, _phone_change("9111111111")))

    with pytest.raises(InvalidCodeError):
        asyncio.run(service.validate(42, "111111"))
    updated = asyncio.run(service.validate(42, "222222"))

    assert updated.phone_number == "9111111111"


def test_unreadable_record_is_discarded(clock: FakeClock) -> None:
    service, _, _, store = _service(clock)
    asyncio.run(store.set("otp:42", "not-json", 600))

    with pytest.raises(NoPendingRequestError):
        asyncio.run(service.validate(42, "482913"))

    assert asyncio.run(store.get("otp:42")) is None


def test_confirmation_failure_does_not_undo_change(clock: FakeClock) -> None:
    service, repository, sender, _ = _service(clock)
    asyncio.run(service.issue(42, _phone_change()))
    sender.fail_for.add("9998887777")

    updated = asyncio.run(service.validate(42, "482913"))

    assert updated.phone_number == "9998887777"
    assert repository.owners[42].phone_number == "9998887777"


def test_number_claimed_by_another_owner_is_rejected(clock: FakeClock) -> None:
    service, repository, sender, store = _service(clock)
    asyncio.run(service.issue(42, _phone_change()))
    repository.add(make_owner(owner_id=7, phone_number="9998887777"))

    with pytest.raises(DuplicateIdentityError):
        asyncio.run(service.validate(42, "482913"))

    assert repository.owners[42].phone_number == "9876543210"
    assert repository.owners[7].phone_number == "9998887777"
    assert asyncio.run(store.get("otp:42")) is not None
    assert len(sender.sent) == 1


def test_failed_update_keeps_code_redeemable(clock: FakeClock) -> None:
    service, repository, _, _ = _service(clock, repository=FlakyOwnerRepository())
    asyncio.run(service.issue(42, _phone_change()))
    clock.advance(120)

    with pytest.raises(UpdateFailedError):
        asyncio.run(service.validate(42, "482913"))

    assert repository.owners[42].phone_number == "9876543210"
    clock.advance(479)
    updated = asyncio.run(service.validate(42, "482913"))
    assert updated.phone_number == "9998887777"
