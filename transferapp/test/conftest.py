import random
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from services.match_service import DriverMatcher, simulated_proximity
from wizard._state import (
    CandidateSource,
    ContactDetails,
    Coordinate,
    DriverCandidate,
    FareQuote,
    InMemoryState,
    PricingProfile,
    RouteEstimate,
    SelectedVehicle,
    SimulatedProximity,
    TransferRequest,
    WizardSnapshot,
    WizardStep,
)
from wizard.wizard import BookingWizard

AIRPORT = Coordinate(latitude=-8.7467, longitude=115.1668)
KUTA = Coordinate(latitude=-8.7180, longitude=115.1686)
UBUD = Coordinate(latitude=-8.5069, longitude=115.2625)


def active_row(driver_id="d-1", vehicle_type="MPV", **overrides):
    row = {
        "transfer_id": 10,
        "driver_id": driver_id,
        "driver_name": f"Driver {driver_id}",
        "driver_phone": "+62811000001",
        "driver_photo_url": None,
        "vehicle_id": f"v-{driver_id}",
        "vehicle_type": vehicle_type,
        "make": "Toyota",
        "model": "Avanza",
        "color": "Silver",
        "license_plate": "DK 1234 AB",
    }
    row.update(overrides)
    return row


def idle_row(driver_id="i-1", **overrides):
    row = {
        "driver_id": driver_id,
        "driver_name": f"Idle {driver_id}",
        "driver_phone": "+62811000002",
        "driver_photo_url": "https://cdn.example/selfie.jpg",
        "vehicle_id": f"v-{driver_id}",
        "vehicle_type": "Sedan",
        "make": "Honda",
        "model": "City",
        "color": "Black",
        "license_plate": "DK 9876 ZZ",
    }
    row.update(overrides)
    return row


def confirmed_snapshot(driver_id="d-1", vehicle_id="v-d-1"):
    """A session parked on the confirmation step, ready to submit."""
    driver = DriverCandidate(
        id=driver_id,
        name="Made",
        phone="+62811000001",
        vehicle_id=vehicle_id,
        vehicle_type="MPV",
        vehicle_description="Toyota Avanza",
        license_plate="DK 1234 AB",
        vehicle_make="Toyota",
        vehicle_model="Avanza",
        vehicle_color="Silver",
        simulated_proximity=SimulatedProximity(distance_km=3.2, eta_min=7),
        pricing_profile=PricingProfile(price_per_km=3250, basic_price=75000, surcharge=40000),
        source=CandidateSource.active_ride,
    )
    return WizardSnapshot(
        step=WizardStep.confirmation,
        request=TransferRequest(
            from_address="Ngurah Rai International Airport",
            to_address="Ubud Palace",
            from_coordinate=AIRPORT,
            to_coordinate=UBUD,
            pickup_date="2026-11-02",
            pickup_time="09:30",
            passenger_count=3,
            vehicle_type="MPV",
        ),
        route=RouteEstimate(distance_km=20, duration_min=45),
        selected_driver=driver,
        vehicle=SelectedVehicle(name="Toyota Avanza", make="Toyota", model="Avanza", license_plate="DK 1234 AB", color="Silver"),
        fare=FareQuote(total=154000),
        contact=ContactDetails(customer_name="Ayu", phone="+62812555", payment_method="cash"),
    )


class FakePoolStore:
    """In-memory driver pool and pricing table."""

    def __init__(self, active=None, idle=None, pricing=None):
        self.active = active or []
        self.idle = idle or []
        self.pricing = pricing if pricing is not None else {}
        self.calls = []

    async def active_bookings_by_vehicle_type(self, vehicle_type):
        self.calls.append(("active", vehicle_type))
        return [row for row in self.active if row["vehicle_type"] == vehicle_type]

    async def idle_drivers_by_status(self, status, limit):
        self.calls.append(("idle", status, limit))
        return self.idle[:limit]

    async def pricing_for(self, vehicle_type):
        self.calls.append(("pricing", vehicle_type))
        return self.pricing.get(vehicle_type)


@pytest.fixture
def pool_store():
    return FakePoolStore(
        active=[active_row("d-1"), active_row("d-2")],
        idle=[idle_row("i-1"), idle_row("i-2")],
        pricing={"MPV": {"price_km": 4000, "basic_price": "90000", "surcharge": "50000"}},
    )


@pytest.fixture
def matcher(pool_store):
    return DriverMatcher(store=pool_store, proximity=simulated_proximity(random.Random(7)))


@pytest.fixture
def resolver():
    addresses = {
        "Ngurah Rai International Airport": AIRPORT,
        "Kuta Beach": KUTA,
        "Ubud Palace": UBUD,
    }
    mock = AsyncMock()
    mock.resolve.side_effect = lambda address: addresses.get(address)
    return mock


@pytest.fixture
def estimator():
    mock = AsyncMock()
    mock.estimate.return_value = RouteEstimate(distance_km=20.0, duration_min=45.0)
    return mock


@pytest.fixture
def submitter():
    mock = AsyncMock()
    mock.submit.return_value = SimpleNamespace(id=501, booking_code="AT-0000BEEF")
    return mock


@pytest.fixture
def snapshot():
    return confirmed_snapshot()


@pytest.fixture
def state_store():
    return InMemoryState()


@pytest.fixture
def wizard(state_store, resolver, estimator, matcher, submitter):
    return BookingWizard(
        store=state_store,
        resolver=resolver,
        estimator=estimator,
        matcher=matcher,
        submitter=submitter,
    )


@pytest.fixture
def pool():
    """Row builders and places for tests that assemble their own driver pool."""
    return SimpleNamespace(
        active_row=active_row,
        idle_row=idle_row,
        Store=FakePoolStore,
        confirmed_snapshot=confirmed_snapshot,
        AIRPORT=AIRPORT,
        KUTA=KUTA,
        UBUD=UBUD,
    )
