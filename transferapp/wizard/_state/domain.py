from enum import Enum
from typing import Optional, Dict, Any, Protocol, List
from pydantic import BaseModel, Field

MIN_DISTANCE_KM = 0.1
MIN_DURATION_MIN = 1.0


class Coordinate(BaseModel):
    latitude: float
    longitude: float

    def is_resolved(self) -> bool:
        # (0, 0) is the "not geocoded yet" marker, never a pickup point
        return not (self.latitude == 0 and self.longitude == 0)

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class RouteEstimate(BaseModel):
    distance_km: float = 0.0
    duration_min: float = 0.0

    @classmethod
    def minimum(cls) -> "RouteEstimate":
        return cls(distance_km=MIN_DISTANCE_KM, duration_min=MIN_DURATION_MIN)

    @classmethod
    def clamped(cls, distance_km: float, duration_min: float) -> "RouteEstimate":
        return cls(
            distance_km=max(distance_km, MIN_DISTANCE_KM),
            duration_min=max(duration_min, MIN_DURATION_MIN),
        )


class PricingProfile(BaseModel):
    price_per_km: float
    basic_price: float
    surcharge: float


class SimulatedProximity(BaseModel):
    """Stand-in for live driver telemetry: how far away and how long until pickup."""
    distance_km: float
    eta_min: int


class CandidateSource(str, Enum):
    active_ride = "active_ride"
    idle_pool = "idle_pool"


class DriverCandidate(BaseModel):
    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    photo_url: Optional[str] = None
    vehicle_id: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_description: Optional[str] = None
    license_plate: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_color: Optional[str] = None
    simulated_proximity: SimulatedProximity
    pricing_profile: PricingProfile
    source: CandidateSource


class FareQuote(BaseModel):
    total: float = 0.0


class TransferRequest(BaseModel):
    from_address: str = ""
    to_address: str = ""
    from_coordinate: Optional[Coordinate] = None
    to_coordinate: Optional[Coordinate] = None
    pickup_date: Optional[str] = None
    pickup_time: Optional[str] = None
    passenger_count: int = Field(default=1, ge=1)
    vehicle_type: Optional[str] = None


class WizardStep(str, Enum):
    location_schedule = "location_schedule"
    route_driver = "route_driver"
    confirmation = "confirmation"
    success = "success"


class ContactDetails(BaseModel):
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None


class SelectedVehicle(BaseModel):
    """Vehicle fields copied from the chosen driver; cleared with the selection."""
    name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    license_plate: Optional[str] = None
    color: Optional[str] = None


class WizardSnapshot(BaseModel):
    step: WizardStep = WizardStep.location_schedule
    request: TransferRequest = Field(default_factory=TransferRequest)
    route: RouteEstimate = Field(default_factory=RouteEstimate)
    candidates: List[DriverCandidate] = Field(default_factory=list)
    no_drivers: bool = False
    selected_driver: Optional[DriverCandidate] = None
    vehicle: SelectedVehicle = Field(default_factory=SelectedVehicle)
    fare: FareQuote = Field(default_factory=FareQuote)
    contact: ContactDetails = Field(default_factory=ContactDetails)
    last_error: Optional[str] = None
    booking_id: Optional[int] = None
    booking_code: Optional[str] = None


class WizardStateRepository(Protocol):

    async def get_state(self) -> WizardSnapshot:
        ...

    async def set_state(self, state: WizardSnapshot) -> bool:
        ...

    async def clear(self) -> bool:
        ...
