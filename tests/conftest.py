"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotbook.api.deps import get_clock
from slotbook.core.security import ROLE_ADMIN, ROLE_PARTNER, create_access_token
from slotbook.db.base import Base
from slotbook.db.session import build_engine, get_db
from slotbook.main import app
from slotbook.models import Partner, Slot, SlotStatus
from slotbook.services.reservations import CustomerDetails, ReservationService
from slotbook.utils.timeslots import local_to_utc, parse_hhmm

# Monday 10 June 2030, 10:00 in Amsterdam (CEST).
NOW = datetime(2030, 6, 10, 8, 0, tzinfo=timezone.utc)
TODAY = date(2030, 6, 10)
AMSTERDAM = ZoneInfo("Europe/Amsterdam")


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def local(day: date, hhmm: str) -> datetime:
    """UTC instant of a wall-clock time in Amsterdam."""
    return local_to_utc(day, parse_hhmm(hhmm), AMSTERDAM)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def partner(db) -> Partner:
    partner = Partner(
        name="Escape Room Centraal",
        slug="escape-room-centraal",
        price_1pax_cents=4995,
        price_2plus_cents=3995,
        fee_percent=20,
        daily_capacity=12,
        timezone="Europe/Amsterdam",
    )
    db.add(partner)
    db.commit()
    db.refresh(partner)
    return partner


@pytest.fixture
def other_partner(db) -> Partner:
    partner = Partner(
        name="Puzzle Loft",
        slug="puzzle-loft",
        price_1pax_cents=3000,
        price_2plus_cents=2500,
        fee_percent=10,
        timezone="Europe/Amsterdam",
    )
    db.add(partner)
    db.commit()
    db.refresh(partner)
    return partner


@pytest.fixture
def make_slot(db, partner):
    """Persist a slot at a local wall-clock time."""

    def _make(day: date, hhmm: str, status: SlotStatus = SlotStatus.PUBLISHED, owner: Partner = None) -> Slot:
        start = local(day, hhmm)
        slot = Slot(
            partner_id=(owner or partner).id,
            start_time=start,
            end_time=start + timedelta(hours=1),
            status=status,
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make


@pytest.fixture
def make_booking(db, clock, partner):
    """Reserve a published slot through the reservation service."""

    def _make(slot: Slot, participants: int = 2, email: str = "ana@example.com"):
        service = ReservationService(db, clock=clock)
        return service.reserve(
            partner.id,
            slot.start_time,
            participants,
            CustomerDetails(name="Ana de Vries", email=email),
        )

    return _make


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    token = create_access_token("ops@slotbook.test", role=ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def partner_headers(partner) -> dict:
    token = create_access_token("owner@escape.test", role=ROLE_PARTNER, partner_id=partner.id)
    return {"Authorization": f"Bearer {token}"}
