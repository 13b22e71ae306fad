from typing import List, Optional

from db.db import get_async_session
from db.models import AirportTransfer
from db.repositories.booking_repository import BookingRepository
from db.repositories.driver_repository import DriverRepository
from db.repositories.pricing_repository import PricingRepository
from dtos.dtos import ActiveBookingRow, IdleDriverRow, PricingRow


class TransferStore:
    """Read side of the driver pool, pricing tables and transfers. One session per call."""

    async def active_bookings_by_vehicle_type(self, vehicle_type: str) -> List[ActiveBookingRow]:
        async with get_async_session() as session:
            return await BookingRepository(session).active_bookings_by_vehicle_type(vehicle_type)

    async def idle_drivers_by_status(self, status: str, limit: int) -> List[IdleDriverRow]:
        async with get_async_session() as session:
            return await DriverRepository(session).idle_drivers_by_status(status, limit)

    async def pricing_for(self, vehicle_type: str) -> Optional[PricingRow]:
        async with get_async_session() as session:
            return await PricingRepository(session).pricing_for(vehicle_type)

    async def insert_transfer(self, transfer: AirportTransfer) -> AirportTransfer:
        async with get_async_session() as session:
            return await BookingRepository(session).insert(transfer)
