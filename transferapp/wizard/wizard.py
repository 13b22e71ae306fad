"""
Airport-transfer booking wizard.

Four ordered steps, each gated on its own inputs:

    location_schedule -> route_driver -> confirmation -> success

Every operation awaits at most one collaborator at a time and writes the
snapshot back to the injected store before returning, so a session can be
picked up again from any process.
"""
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import (
    NotFoundError,
    PersistenceFailure,
    StateError,
    StepValidationError,
    ValidationError,
)
from services.booking_service import BookingSubmitter
from services.fare_service import quote
from services.geolocation_service import AddressResolver
from services.match_service import DriverMatcher
from services.routing_service import RouteEstimator
from wizard._state.domain import (
    ContactDetails,
    Coordinate,
    DriverCandidate,
    FareQuote,
    RouteEstimate,
    SelectedVehicle,
    TransferRequest,
    WizardSnapshot,
    WizardStateRepository,
    WizardStep,
)

logger = logging.getLogger(__name__)

REQUEST_FIELDS = frozenset(TransferRequest.model_fields)


def _coordinate(value: Any) -> Optional[Coordinate]:
    if value is None:
        return None
    coordinate = value if isinstance(value, Coordinate) else Coordinate.model_validate(value)
    return coordinate if coordinate.is_resolved() else None


def _blank(value: Optional[str]) -> bool:
    return not value or not str(value).strip()


class BookingWizard:

    def __init__(
        self,
        store: WizardStateRepository,
        resolver: Optional[AddressResolver] = None,
        estimator: Optional[RouteEstimator] = None,
        matcher: Optional[DriverMatcher] = None,
        submitter: Optional[BookingSubmitter] = None,
    ):
        self.store = store
        self.resolver = resolver or AddressResolver()
        self.estimator = estimator or RouteEstimator()
        self.matcher = matcher or DriverMatcher()
        self.submitter = submitter or BookingSubmitter()
        self.snapshot = WizardSnapshot()

    async def load(self) -> WizardSnapshot:
        self.snapshot = await self.store.get_state()
        return self.snapshot

    async def _save(self) -> WizardSnapshot:
        if not await self.store.set_state(self.snapshot):
            logger.warning("Wizard snapshot could not be persisted; continuing with in-process state")
        return self.snapshot

    def view(self) -> WizardSnapshot:
        return self.snapshot

    def _require(self, *steps: WizardStep) -> None:
        if self.snapshot.step not in steps:
            allowed = ", ".join(step.value for step in steps)
            raise StateError(
                f"Not allowed in step {self.snapshot.step.value} (allowed: {allowed})",
                {"step": self.snapshot.step.value},
            )

    # ---- derived-state invalidation ----

    def _invalidate_route(self) -> None:
        self.snapshot.route = RouteEstimate()
        self.snapshot.fare = FareQuote()

    def _clear_selection(self) -> None:
        self.snapshot.selected_driver = None
        self.snapshot.vehicle = SelectedVehicle()
        self.snapshot.fare = FareQuote()

    def _clear_candidates(self) -> None:
        self.snapshot.candidates = []
        self.snapshot.no_drivers = False
        self._clear_selection()

    # ---- step 1: location & schedule ----

    async def update_request(self, **fields: Any) -> WizardSnapshot:
        self._require(WizardStep.location_schedule)

        unknown = set(fields) - REQUEST_FIELDS
        if unknown:
            raise ValidationError(f"Unknown request fields: {', '.join(sorted(unknown))}")

        current = self.snapshot.request
        data = current.model_dump()

        for side in ("from", "to"):
            address_key, coordinate_key = f"{side}_address", f"{side}_coordinate"

            if coordinate_key in fields:
                fields[coordinate_key] = _coordinate(fields[coordinate_key])

            if address_key in fields:
                fields[address_key] = (fields[address_key] or "").strip()
                # A new address makes the old coordinate meaningless unless a pin came with it
                if fields[address_key] != current.model_dump()[address_key] and coordinate_key not in fields:
                    fields[coordinate_key] = None

        data.update({key: value.model_dump() if isinstance(value, Coordinate) else value for key, value in fields.items()})

        try:
            request = TransferRequest.model_validate(data)
        except PydanticValidationError as error:
            raise ValidationError(f"Invalid transfer request: {error}") from error

        location_changed = any(
            getattr(request, key) != getattr(current, key)
            for key in ("from_address", "to_address", "from_coordinate", "to_coordinate")
        )

        self.snapshot.request = request
        self.snapshot.last_error = None

        if location_changed:
            self._invalidate_route()
            if self._locations_known():
                self.snapshot.route = await self.estimator.estimate(request.from_coordinate, request.to_coordinate)

        if request.vehicle_type != current.vehicle_type:
            self._clear_candidates()

        return await self._save()

    def _locations_known(self) -> bool:
        request = self.snapshot.request
        return (
            not _blank(request.from_address)
            and not _blank(request.to_address)
            and request.from_coordinate is not None
            and request.to_coordinate is not None
        )

    async def swap_addresses(self) -> WizardSnapshot:
        self._require(WizardStep.location_schedule)

        request = self.snapshot.request
        self.snapshot.request = request.model_copy(update={
            "from_address": request.to_address,
            "to_address": request.from_address,
            "from_coordinate": request.to_coordinate,
            "to_coordinate": request.from_coordinate,
        })
        self._invalidate_route()
        if self._locations_known():
            self.snapshot.route = await self.estimator.estimate(
                self.snapshot.request.from_coordinate, self.snapshot.request.to_coordinate
            )
        return await self._save()

    def _missing_step_one(self) -> list:
        request = self.snapshot.request
        missing = []
        if _blank(request.from_address):
            missing.append("from_address")
        if _blank(request.to_address):
            missing.append("to_address")
        if _blank(request.pickup_date):
            missing.append("pickup_date")
        if _blank(request.pickup_time):
            missing.append("pickup_time")
        return missing

    async def _resolve_locations(self) -> None:
        request = self.snapshot.request
        unresolved = []

        for side in ("from", "to"):
            coordinate_key = f"{side}_coordinate"
            if getattr(request, coordinate_key) is not None:
                continue

            coordinate = await self.resolver.resolve(getattr(request, f"{side}_address"))
            if coordinate is None:
                unresolved.append(coordinate_key)
            else:
                setattr(request, coordinate_key, coordinate)

        if unresolved:
            self.snapshot.last_error = "We could not locate one of the addresses. Check it or drop a pin on the map."
            await self._save()
            raise StepValidationError("Address could not be resolved", unresolved)

    async def _leave_location_schedule(self) -> None:
        missing = self._missing_step_one()
        if missing:
            raise StepValidationError("Pickup, drop-off, date and time are required", missing)

        await self._resolve_locations()

        request = self.snapshot.request
        self.snapshot.route = await self.estimator.estimate(request.from_coordinate, request.to_coordinate)

        self._clear_candidates()
        self.snapshot.step = WizardStep.route_driver

        if request.vehicle_type:
            await self._search()

    # ---- step 2: route & driver selection ----

    async def _search(self) -> None:
        request = self.snapshot.request
        self._clear_candidates()
        self.snapshot.candidates = await self.matcher.find_candidates(request.vehicle_type, request)
        self.snapshot.no_drivers = not self.snapshot.candidates

    async def set_vehicle_type(self, vehicle_type: str) -> WizardSnapshot:
        self._require(WizardStep.location_schedule, WizardStep.route_driver)

        if _blank(vehicle_type):
            raise ValidationError("vehicle_type must not be empty")

        self.snapshot.request.vehicle_type = vehicle_type.strip()
        self._clear_candidates()

        if self.snapshot.step == WizardStep.route_driver:
            # A different vehicle class invalidates every candidate found so far
            await self._search()

        return await self._save()

    async def retry_search(self) -> WizardSnapshot:
        self._require(WizardStep.route_driver)

        if _blank(self.snapshot.request.vehicle_type):
            raise StepValidationError("Choose a vehicle type first", ["vehicle_type"])

        await self._search()
        return await self._save()

    async def select_driver(self, candidate_id: str) -> WizardSnapshot:
        self._require(WizardStep.route_driver)

        candidate = next((c for c in self.snapshot.candidates if c.id == str(candidate_id)), None)
        if candidate is None:
            raise NotFoundError(f"Driver {candidate_id} is not among the current candidates")

        self._select(candidate)
        return await self._save()

    def _select(self, candidate: DriverCandidate) -> None:
        self.snapshot.selected_driver = candidate
        self.snapshot.vehicle = SelectedVehicle(
            name=candidate.vehicle_description,
            make=candidate.vehicle_make,
            model=candidate.vehicle_model,
            license_plate=candidate.license_plate,
            color=candidate.vehicle_color,
        )
        self.snapshot.fare = quote(self.snapshot.route, candidate.pricing_profile)

    def _leave_route_driver(self) -> None:
        candidate = self.snapshot.selected_driver
        if candidate is None:
            raise StepValidationError("Select a driver to continue", ["driver"])

        self.snapshot.fare = quote(self.snapshot.route, candidate.pricing_profile)
        self.snapshot.step = WizardStep.confirmation

    # ---- step 3: confirmation ----

    async def set_contact(
        self,
        customer_name: Optional[str] = None,
        phone: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> WizardSnapshot:
        self._require(WizardStep.confirmation)

        updates: Dict[str, Any] = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in (("customer_name", customer_name), ("phone", phone), ("payment_method", payment_method))
            if value is not None
        }
        self.snapshot.contact = self.snapshot.contact.model_copy(update=updates)
        return await self._save()

    def _missing_confirmation(self) -> list:
        contact: ContactDetails = self.snapshot.contact
        missing = [key for key in ("customer_name", "phone", "payment_method") if _blank(getattr(contact, key))]
        if self.snapshot.selected_driver is None:
            missing.append("driver")
        return missing

    async def _leave_confirmation(self) -> None:
        missing = self._missing_confirmation()
        if missing:
            raise StepValidationError("Name, phone and payment method are required", missing)

        try:
            transfer = await self.submitter.submit(self.snapshot)
        except PersistenceFailure as error:
            self.snapshot.last_error = error.message
            await self._save()
            raise

        self.snapshot.booking_id = transfer.id
        self.snapshot.booking_code = transfer.booking_code
        self.snapshot.last_error = None
        self.snapshot.step = WizardStep.success
        logger.info(f"Transfer {transfer.booking_code} booked with driver {self.snapshot.selected_driver.id}")

    # ---- navigation ----

    async def next(self) -> WizardSnapshot:
        step = self.snapshot.step

        if step == WizardStep.location_schedule:
            await self._leave_location_schedule()
        elif step == WizardStep.route_driver:
            self._leave_route_driver()
        elif step == WizardStep.confirmation:
            await self._leave_confirmation()
        else:
            raise StateError("Booking already submitted", {"step": step.value})

        self.snapshot.last_error = None
        return await self._save()

    async def back(self) -> WizardSnapshot:
        step = self.snapshot.step

        if step == WizardStep.route_driver:
            self.snapshot.step = WizardStep.location_schedule
        elif step == WizardStep.confirmation:
            self._clear_selection()
            self.snapshot.step = WizardStep.route_driver
        else:
            raise StateError(f"Cannot go back from {step.value}", {"step": step.value})

        self.snapshot.last_error = None
        return await self._save()

    async def reset(self) -> WizardSnapshot:
        await self.store.clear()
        self.snapshot = WizardSnapshot()
        return self.snapshot
