# repositories/base_repository.py
from typing import TypeVar, Generic, Type
from sqlalchemy.ext.asyncio import AsyncSession
from db.models import HasId

T = TypeVar("T", bound=HasId)

class BaseRepository(Generic[T]):
    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def create(self, obj: T) -> T:
        async with self.db.begin():
            self.db.add(obj)
            await self.db.flush()
            await self.db.refresh(obj)
            return obj
