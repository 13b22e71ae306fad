from services.notification_service import NotificationService
import logging


logger = logging.getLogger(__name__)
noti_service = NotificationService()


async def _notify_booking_created_task(transfer_id: int):
    try:
        await noti_service.notify_booking_created(transfer_id)
    except Exception as e:
        logger.exception(f"Error in notify_booking_created task for transfer {transfer_id}: {e}")
        raise
