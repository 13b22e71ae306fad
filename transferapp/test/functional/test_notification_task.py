import pytest
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from db.models import AirportTransfer, NotificationStatus
from jobs.task import _notify_booking_created_task
from services.notification_service import NotificationService, booking_message


@asynccontextmanager
async def fake_session():
    yield SimpleNamespace()


def transfer(driver_id="d-1"):
    return AirportTransfer(
        id=77,
        booking_code="AT-1A2B3C4D",
        pickup_location="Ngurah Rai International Airport",
        dropoff_location="Ubud Palace",
        pickup_date="2026-11-02",
        pickup_time="09:30",
        passenger=2,
        customer_name="Ayu",
        phone="+62812555",
        price=154000.0,
        driver_id=driver_id,
    )


@pytest.fixture
def repos():
    with patch("services.notification_service.get_async_session", fake_session), \
         patch("services.notification_service.BookingRepository") as booking_repo, \
         patch("services.notification_service.NotificationRepository") as notification_repo:
        booking_repo.return_value.get_with_driver = AsyncMock()
        notification_repo.return_value.create = AsyncMock(side_effect=lambda notification: notification)
        yield booking_repo.return_value, notification_repo.return_value


def test_booking_message():
    message = booking_message(transfer())
    assert "AT-1A2B3C4D" in message
    assert "Ubud Palace" in message
    assert "154,000" in message


@pytest.mark.asyncio
async def test_creates_pending_notification_for_driver(repos):
    booking_repo, notification_repo = repos
    booking_repo.get_with_driver.return_value = transfer()

    notification = await NotificationService().notify_booking_created(77)

    assert notification.driver_id == "d-1"
    assert notification.transfer_id == 77
    assert notification.status == NotificationStatus.pending
    notification_repo.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_missing_transfer(repos):
    booking_repo, notification_repo = repos
    booking_repo.get_with_driver.return_value = None

    assert await NotificationService().notify_booking_created(77) is None
    notification_repo.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_transfer_without_driver(repos):
    booking_repo, notification_repo = repos
    booking_repo.get_with_driver.return_value = transfer(driver_id=None)

    assert await NotificationService().notify_booking_created(77) is None
    notification_repo.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_task_reraises_for_broker_retry(caplog):
    with patch("jobs.task.noti_service.notify_booking_created", AsyncMock(side_effect=RuntimeError("db down"))):
        with pytest.raises(RuntimeError):
            await _notify_booking_created_task(77)
    assert "notify_booking_created task" in caplog.text
