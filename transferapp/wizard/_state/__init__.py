from .domain import (
    Coordinate,
    RouteEstimate,
    PricingProfile,
    SimulatedProximity,
    CandidateSource,
    DriverCandidate,
    FareQuote,
    TransferRequest,
    WizardStep,
    ContactDetails,
    SelectedVehicle,
    WizardSnapshot,
    WizardStateRepository,
)
from .in_memory_state import InMemoryState
from .redis_state import RedisState

__all__ = [
    "Coordinate",
    "RouteEstimate",
    "PricingProfile",
    "SimulatedProximity",
    "CandidateSource",
    "DriverCandidate",
    "FareQuote",
    "TransferRequest",
    "WizardStep",
    "ContactDetails",
    "SelectedVehicle",
    "WizardSnapshot",
    "WizardStateRepository",
    "InMemoryState",
    "RedisState",
]
