# repositories/pricing_repository.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import SQLAlchemyError
from db.models import Vehicle
from dtos.dtos import PricingRow
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class PricingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def pricing_for(self, vehicle_type: str) -> Optional[PricingRow]:
        """Raw pricing columns of the first active vehicle of that type. Values are not validated here."""
        try:
            async with self.db.begin():
                stmt = (
                    select(Vehicle.price_km, Vehicle.basic_price, Vehicle.surcharge)
                    .where(Vehicle.type == vehicle_type, Vehicle.is_active.is_(True))
                    .limit(1)
                )
                result = await self.db.execute(stmt)
                row = result.first()
                if row is None:
                    return None
                return PricingRow(price_km=row.price_km, basic_price=row.basic_price, surcharge=row.surcharge)

        except SQLAlchemyError as error:
            logger.exception(f"Error while fetching pricing for {vehicle_type!r}: {error}")
            raise
