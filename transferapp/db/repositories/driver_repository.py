# repositories/driver_repository.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import SQLAlchemyError
from db.models import Driver, Vehicle
from db.repositories.base_repository import BaseRepository
from dtos.dtos import IdleDriverRow
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


def _primary_vehicle(driver: Driver) -> Optional[Vehicle]:
    for vehicle in driver.vehicles:
        if vehicle.is_active:
            return vehicle
    return None


class DriverRepository(BaseRepository[Driver]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Driver)

    async def idle_drivers_by_status(self, status: str, limit: int) -> List[IdleDriverRow]:
        """Drivers in the given status (normally "available"), capped at limit, in query order."""
        try:
            async with self.db.begin():
                stmt = (
                    select(Driver)
                    .options(selectinload(Driver.vehicles))
                    .where(Driver.driver_status == status)
                    .limit(limit)
                )
                result = await self.db.execute(stmt)
                drivers = result.scalars().all()

                if not drivers:
                    logger.info(f"No drivers with status {status!r} found.")

                rows: List[IdleDriverRow] = []
                for driver in drivers:
                    vehicle = _primary_vehicle(driver)
                    rows.append(IdleDriverRow(
                        driver_id=driver.id,
                        driver_name=driver.name,
                        driver_phone=driver.phone,
                        driver_photo_url=driver.selfie_url,
                        vehicle_id=vehicle.id if vehicle else None,
                        vehicle_type=(vehicle.type if vehicle else None) or driver.vehicle_type,
                        make=vehicle.make if vehicle else None,
                        model=vehicle.model if vehicle else None,
                        color=vehicle.color if vehicle else None,
                        license_plate=vehicle.license_plate if vehicle else None,
                    ))
                return rows

        except SQLAlchemyError as error:
            logger.exception(f"Error while fetching idle drivers: {error}")
            raise
