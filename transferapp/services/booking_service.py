import asyncio
import logging
import uuid
from typing import Optional, Protocol

from core.exceptions import PersistenceFailure, StepValidationError, TransferError
from core.retry import RetryPolicy, with_retry
from db.models import AirportTransfer, TransferStatus
from wizard._state.domain import WizardSnapshot

logger = logging.getLogger(__name__)

DEFAULT_SUBMIT_POLICY = RetryPolicy(max_attempts=3, base_delay=0.5, multiplier=2.0, max_delay=4.0)


class TransferWriter(Protocol):

    async def insert_transfer(self, transfer: AirportTransfer) -> AirportTransfer:
        ...


def generate_booking_code() -> str:
    return f"AT-{uuid.uuid4().hex[:8].upper()}"


def build_transfer(snapshot: WizardSnapshot, booking_code: str) -> AirportTransfer:
    """Maps a completed wizard session onto an airport_transfer row."""
    request = snapshot.request
    driver = snapshot.selected_driver
    contact = snapshot.contact

    missing = [
        name for name, value in (
            ("driver", driver),
            ("customer_name", contact.customer_name),
            ("phone", contact.phone),
            ("payment_method", contact.payment_method),
        ) if not value
    ]
    if missing:
        raise StepValidationError("Booking is incomplete", missing)

    return AirportTransfer(
        booking_code=booking_code,
        status=TransferStatus.pending,
        customer_name=contact.customer_name,
        phone=contact.phone,
        payment_method=contact.payment_method,
        pickup_location=request.from_address,
        dropoff_location=request.to_address,
        from_location=request.from_coordinate.model_dump() if request.from_coordinate else None,
        to_location=request.to_coordinate.model_dump() if request.to_coordinate else None,
        pickup_date=request.pickup_date,
        pickup_time=request.pickup_time,
        passenger=request.passenger_count,
        type=request.vehicle_type,
        distance=snapshot.route.distance_km,
        duration=snapshot.route.duration_min,
        price=snapshot.fare.total,
        driver_id=driver.id,
        driver_name=driver.name,
        vehicle_id=driver.vehicle_id,
        vehicle_name=snapshot.vehicle.name,
        make=snapshot.vehicle.make,
        model=snapshot.vehicle.model,
        license_plate=snapshot.vehicle.license_plate,
        color=snapshot.vehicle.color,
    )


class BookingSubmitter:

    def __init__(self, store: Optional[TransferWriter] = None, policy: RetryPolicy = DEFAULT_SUBMIT_POLICY, notify: bool = True):
        if store is None:
            from db.transfer_store import TransferStore
            store = TransferStore()
        self.store = store
        self.policy = policy
        self.notify = notify

    async def submit(self, snapshot: WizardSnapshot, policy: Optional[RetryPolicy] = None) -> AirportTransfer:
        """
        Inserts the booking as a single row. Transient database errors are
        retried per the policy; anything left over becomes PersistenceFailure
        and no row is kept.
        """
        booking_code = generate_booking_code()
        transfer_row = build_transfer(snapshot, booking_code)

        async def insert() -> AirportTransfer:
            # A fresh ORM object per attempt; a failed flush leaves the previous one unusable
            return await self.store.insert_transfer(build_transfer(snapshot, booking_code))

        try:
            transfer = await with_retry(insert, policy or self.policy, operation_name=f"insert transfer {transfer_row.booking_code}")
        except TransferError as error:
            logger.error(f"Failed to create transfer {booking_code}: {error}")
            raise PersistenceFailure("Your booking could not be saved, please try again.", {"cause": str(error)}) from error

        if self.notify:
            self._dispatch_notification(transfer.id)

        return transfer

    def _dispatch_notification(self, transfer_id: int) -> None:
        try:
            from jobs.worker import notify_booking_created_task  # Lazy import to break circular import dependency

            # Fire-and-forget: enqueue task, don't await
            asyncio.create_task(notify_booking_created_task.kiq(int(transfer_id)))
        except Exception as error:
            logger.exception(f"Could not enqueue notification for transfer {transfer_id}: {error}")
