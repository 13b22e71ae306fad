from sqlalchemy.ext.asyncio import AsyncSession

from db.models import TransferNotification
from db.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[TransferNotification]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, TransferNotification)
