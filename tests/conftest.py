"""Pytest fixtures for gatepass tests."""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio

from gatepass.models.schemas import CreateGuestRequest, CreateMemberRequest
from gatepass.services import ScanDebouncer, Services
from gatepass.store import MemoryDocumentStore


ORG_A = "org-las-palmas"
ORG_B = "org-vista-verde"
GUARD_ID = "guard-01"

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Wall clock the tests can move."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeMonotonic:
    """Monotonic seconds for the debouncer."""

    def __init__(self):
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float):
        self.value += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def services(store, clock, monotonic) -> Services:
    return Services(store, clock, debouncer=ScanDebouncer(cooldown_ms=750, clock=monotonic))


@pytest_asyncio.fixture
async def community(services):
    """One organization with a member, the member's guest and a guard."""
    member = await services.members.register_member(
        ORG_A,
        CreateMemberRequest(
            name="Ana Ruiz",
            email="ana@example.com",
            phone="555-0100",
            home_address="Casa 12, Calle Roble",
        ),
        member_id="member-ana",
    )
    guest = await services.guests.create_guest(
        ORG_A,
        CreateGuestRequest(owner_member_id=member.id, name="Luis Ortega", phone="555-0101"),
    )
    guard = await services.members.register_guard(ORG_A, GUARD_ID, "Pedro Sánchez", "B-17")
    return SimpleNamespace(member=member, guest=guest, guard=guard)
