import logging
from typing import Optional

from db.db import get_async_session
from db.models import AirportTransfer, TransferNotification, NotificationStatus
from db.repositories.booking_repository import BookingRepository
from db.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


def booking_message(transfer: AirportTransfer) -> str:
    return (
        f"New airport transfer {transfer.booking_code}\n"
        f"Pickup: {transfer.pickup_location}\n"
        f"Drop-off: {transfer.dropoff_location}\n"
        f"When: {transfer.pickup_date} {transfer.pickup_time}\n"
        f"Passengers: {transfer.passenger}\n"
        f"Customer: {transfer.customer_name} ({transfer.phone})\n"
        f"Fare: {transfer.price:,.0f}"
    )


class NotificationService:

    async def notify_booking_created(self, transfer_id: int) -> Optional[TransferNotification]:
        """Stores a pending notification for the driver assigned to the transfer."""
        async with get_async_session() as session:
            transfer = await BookingRepository(session).get_with_driver(transfer_id)

        if not transfer:
            logger.warning(f"Transfer {transfer_id} not found, nothing to notify")
            return None

        if not transfer.driver_id:
            logger.info(f"Transfer {transfer_id} has no driver assigned, skipping notification")
            return None

        notification = TransferNotification(
            transfer_id=transfer.id,
            driver_id=transfer.driver_id,
            message=booking_message(transfer),
            status=NotificationStatus.pending,
        )

        async with get_async_session() as session:
            notification = await NotificationRepository(session).create(notification)

        logger.info(f"Notification {notification.id} created for driver {transfer.driver_id} on transfer {transfer.booking_code}")
        return notification
