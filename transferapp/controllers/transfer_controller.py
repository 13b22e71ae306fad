import logging
from typing import Awaitable, Callable, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from core.exceptions import (
    NotFoundError,
    PersistenceFailure,
    StateError,
    StepValidationError,
    TransferError,
    ValidationError,
)
from services.geolocation_service import AddressResolver, LocationParams, MapboxService
from wizard._state import Coordinate, RedisState, WizardSnapshot
from wizard.wizard import BookingWizard

logger = logging.getLogger(__name__)


class RequestUpdate(BaseModel):
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    from_coordinate: Optional[Coordinate] = None
    to_coordinate: Optional[Coordinate] = None
    pickup_date: Optional[str] = None
    pickup_time: Optional[str] = None
    passenger_count: Optional[int] = Field(default=None, ge=1)
    vehicle_type: Optional[str] = None


class VehicleTypeUpdate(BaseModel):
    vehicle_type: str


class ContactUpdate(BaseModel):
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    payment_method: Optional[str] = None


def _default_wizard(session_id: str) -> BookingWizard:
    return BookingWizard(store=RedisState(session_id=session_id))


def _http_error(error: TransferError) -> HTTPException:
    if isinstance(error, StepValidationError):
        return HTTPException(status_code=422, detail={"error": error.message, "missing": error.missing})
    if isinstance(error, ValidationError):
        return HTTPException(status_code=422, detail={"error": error.message})
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail={"error": error.message})
    if isinstance(error, StateError):
        return HTTPException(status_code=409, detail={"error": error.message, **error.details})
    if isinstance(error, PersistenceFailure):
        return HTTPException(status_code=503, detail={"error": error.message, "retryable": True})
    return HTTPException(status_code=500, detail={"error": error.message})


class TransferController:
    def __init__(
        self,
        wizard_factory: Callable[[str], BookingWizard] = _default_wizard,
        geocoder: Optional[MapboxService] = None,
    ):
        self.wizard_factory = wizard_factory
        self.geocoder = geocoder

    async def _run(self, session_id: str, action: Callable[[BookingWizard], Awaitable[WizardSnapshot]]) -> WizardSnapshot:
        try:
            wizard = self.wizard_factory(session_id)
        except ValueError as error:
            raise HTTPException(status_code=400, detail={"error": str(error)})

        await wizard.load()
        try:
            return await action(wizard)
        except TransferError as error:
            logger.info(f"Wizard {session_id}: {type(error).__name__}: {error.message}")
            raise _http_error(error)

    async def get_state(self, session_id: str) -> WizardSnapshot:
        async def view(wizard: BookingWizard) -> WizardSnapshot:
            return wizard.view()
        return await self._run(session_id, view)

    async def update_request(self, session_id: str, body: RequestUpdate) -> WizardSnapshot:
        fields = body.model_dump(exclude_unset=True)
        return await self._run(session_id, lambda wizard: wizard.update_request(**fields))

    async def swap_addresses(self, session_id: str) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.swap_addresses())

    async def set_vehicle_type(self, session_id: str, body: VehicleTypeUpdate) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.set_vehicle_type(body.vehicle_type))

    async def retry_search(self, session_id: str) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.retry_search())

    async def select_driver(self, session_id: str, candidate_id: str) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.select_driver(candidate_id))

    async def set_contact(self, session_id: str, body: ContactUpdate) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.set_contact(**body.model_dump()))

    async def next_step(self, session_id: str) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.next())

    async def previous_step(self, session_id: str) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.back())

    async def reset(self, session_id: str) -> WizardSnapshot:
        return await self._run(session_id, lambda wizard: wizard.reset())

    async def geocode(self, address: str) -> Optional[Coordinate]:
        return await AddressResolver(self.geocoder).resolve(address)

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[LocationParams]:
        place = await AddressResolver(self.geocoder).describe(Coordinate(latitude=latitude, longitude=longitude))
        if place is None:
            return None
        return LocationParams(latitude=latitude, longitude=longitude, place=place)

    async def suggest_addresses(self, query: str, limit: int) -> List[LocationParams]:
        return await AddressResolver(self.geocoder).suggest(query, limit)
