import logging
import random
from typing import Callable, List, Optional, Protocol

from dtos.dtos import ActiveBookingRow, IdleDriverRow, PricingRow
from services.fare_service import resolve_pricing
from wizard._state.domain import (
    CandidateSource,
    DriverCandidate,
    PricingProfile,
    SimulatedProximity,
    TransferRequest,
)
import config.conf as conf

logger = logging.getLogger(__name__)


class DriverPoolStore(Protocol):

    async def active_bookings_by_vehicle_type(self, vehicle_type: str) -> List[ActiveBookingRow]:
        ...

    async def idle_drivers_by_status(self, status: str, limit: int) -> List[IdleDriverRow]:
        ...

    async def pricing_for(self, vehicle_type: str) -> Optional[PricingRow]:
        ...


ProximityProvider = Callable[[TransferRequest], SimulatedProximity]


def simulated_proximity(rng: Optional[random.Random] = None) -> ProximityProvider:
    """
    Placeholder for a live driver-location feed: a bounded random distance
    (1-10 km) and an ETA of two minutes per km plus one. Swap this provider
    for a real one without touching DriverMatcher.
    """
    rng = rng or random.Random()

    def provide(request: TransferRequest) -> SimulatedProximity:
        distance_km = round(rng.uniform(1, 10), 1)
        return SimulatedProximity(distance_km=distance_km, eta_min=round(distance_km * 2) + 1)

    return provide


def _describe_vehicle(make: Optional[str], model: Optional[str]) -> Optional[str]:
    description = " ".join(part for part in (make, model) if part)
    return description or None


class DriverMatcher:
    """
    Two-tier cascade: drivers already on a confirmed or running transfer with
    the requested vehicle type first, and only when there are none, the idle
    "available" pool. Candidates keep query order; nothing is ranked and no
    driver is reserved.
    """

    def __init__(
        self,
        store: Optional[DriverPoolStore] = None,
        proximity: Optional[ProximityProvider] = None,
        idle_limit: int = conf.IDLE_DRIVER_LIMIT,
    ):
        if store is None:
            from db.transfer_store import TransferStore  # Lazy import keeps the DB engine out of pure callers
            store = TransferStore()
        self.store = store
        self.proximity = proximity or simulated_proximity()
        self.idle_limit = idle_limit

    async def _pricing(self, vehicle_type: str) -> PricingProfile:
        return resolve_pricing(await self.store.pricing_for(vehicle_type), vehicle_type)

    async def find_candidates(self, vehicle_type: str, request: TransferRequest) -> List[DriverCandidate]:
        candidates = await self._active_ride_candidates(vehicle_type, request)
        if candidates:
            return candidates

        candidates = await self._idle_candidates(vehicle_type, request)
        if not candidates:
            logger.info(f"No drivers available for vehicle type {vehicle_type!r}")
        return candidates

    async def _active_ride_candidates(self, vehicle_type: str, request: TransferRequest) -> List[DriverCandidate]:
        rows = await self.store.active_bookings_by_vehicle_type(vehicle_type)

        candidates: List[DriverCandidate] = []
        seen = set()
        for row in rows:
            if row["vehicle_type"] != vehicle_type or row["driver_id"] in seen:
                continue
            seen.add(row["driver_id"])

            candidates.append(self._candidate(row, vehicle_type, await self._pricing(vehicle_type), request, CandidateSource.active_ride))

        return candidates

    async def _idle_candidates(self, vehicle_type: str, request: TransferRequest) -> List[DriverCandidate]:
        rows = await self.store.idle_drivers_by_status(conf.DRIVER_AVAILABLE_STATUS, self.idle_limit)
        if not rows:
            return []

        # One shared profile for the whole idle pool
        pricing = await self._pricing(vehicle_type)
        return [
            self._candidate(row, vehicle_type, pricing, request, CandidateSource.idle_pool)
            for row in rows
        ]

    def _candidate(self, row, vehicle_type: str, pricing: PricingProfile, request: TransferRequest, source: CandidateSource) -> DriverCandidate:
        return DriverCandidate(
            id=str(row["driver_id"]),
            name=row["driver_name"],
            phone=row["driver_phone"],
            photo_url=row["driver_photo_url"],
            # Only a vehicle of the booked class is linked to the transfer
            vehicle_id=row.get("vehicle_id") if row["vehicle_type"] == vehicle_type else None,
            vehicle_type=vehicle_type,
            vehicle_description=_describe_vehicle(row["make"], row["model"]),
            license_plate=row["license_plate"],
            vehicle_make=row["make"],
            vehicle_model=row["model"],
            vehicle_color=row["color"],
            simulated_proximity=self.proximity(request),
            pricing_profile=pricing,
            source=source,
        )
