# repositories/booking_repository.py
import asyncio
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError, InterfaceError
from db.models import AirportTransfer, Vehicle, ACTIVE_TRANSFER_STATUSES
from db.repositories.base_repository import BaseRepository
from dtos.dtos import ActiveBookingRow
from core.exceptions import PersistenceError, ValidationError
from typing import List, Optional
import logging


logger = logging.getLogger(__name__)

class BookingRepository(BaseRepository[AirportTransfer]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, AirportTransfer)

    async def active_bookings_by_vehicle_type(self, vehicle_type: str) -> List[ActiveBookingRow]:
        """
        Confirmed or on-ride transfers of vehicle_type with a driver assigned.
        The assigned vehicle's type wins; transfers without a vehicle row fall
        back to the type stored on the booking.
        """
        try:
            async with self.db.begin():
                stmt = (
                    select(AirportTransfer)
                    .outerjoin(Vehicle, AirportTransfer.vehicle_id == Vehicle.id)
                    .options(
                        joinedload(AirportTransfer.driver),
                        joinedload(AirportTransfer.vehicle),
                    )
                    .where(
                        AirportTransfer.status.in_(ACTIVE_TRANSFER_STATUSES),
                        AirportTransfer.driver_id.is_not(None),
                        func.coalesce(Vehicle.type, AirportTransfer.type) == vehicle_type,
                    )
                    .order_by(AirportTransfer.id)
                )
                result = await self.db.execute(stmt)
                transfers = result.scalars().all()

                rows: List[ActiveBookingRow] = []
                for transfer in transfers:
                    if transfer.driver is None:
                        continue
                    vehicle = transfer.vehicle
                    rows.append(ActiveBookingRow(
                        transfer_id=transfer.id,
                        driver_id=transfer.driver.id,
                        driver_name=transfer.driver.name,
                        driver_phone=transfer.driver.phone,
                        driver_photo_url=transfer.driver.selfie_url,
                        vehicle_id=vehicle.id if vehicle else None,
                        vehicle_type=vehicle.type if vehicle and vehicle.type else transfer.type,
                        make=vehicle.make if vehicle else transfer.make,
                        model=vehicle.model if vehicle else transfer.model,
                        color=vehicle.color if vehicle else transfer.color,
                        license_plate=vehicle.license_plate if vehicle else transfer.license_plate,
                    ))
                return rows

        except SQLAlchemyError as error:
            logger.exception(f"Error while fetching active transfers: {error}")
            raise

    async def get_with_driver(self, transfer_id: int) -> Optional[AirportTransfer]:
        async with self.db.begin():
            result = await self.db.execute(
                select(AirportTransfer)
                .options(joinedload(AirportTransfer.driver))
                .where(AirportTransfer.id == transfer_id)
            )
            return result.scalar_one_or_none()

    async def insert(self, transfer: AirportTransfer) -> AirportTransfer:
        """Single-transaction insert; on any failure the transaction rolls back and nothing is kept."""
        try:
            return await self.create(transfer)
        except IntegrityError as error:
            raise ValidationError(f"Transfer rejected by the database: {error.orig}") from error
        except (OperationalError, InterfaceError) as error:
            raise PersistenceError(f"Database unavailable while saving transfer: {error}") from error
        except SQLAlchemyError as error:
            logger.exception("Database error while saving transfer")
            raise PersistenceError(str(error)) from error
        except (OSError, asyncio.TimeoutError) as error:
            # The driver raises connection failures unwrapped
            raise PersistenceError(f"Could not reach the database while saving transfer: {error!r}") from error
