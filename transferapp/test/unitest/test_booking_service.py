import re
import pytest
from unittest.mock import AsyncMock, patch

from core.exceptions import PersistenceError, PersistenceFailure, StepValidationError, ValidationError
from core.retry import RetryPolicy
from db.models import AirportTransfer, TransferStatus
from services.booking_service import BookingSubmitter, build_transfer, generate_booking_code

FAST = RetryPolicy(max_attempts=3, base_delay=0, max_delay=0)


def test_booking_code_format():
    assert re.fullmatch(r"AT-[0-9A-F]{8}", generate_booking_code())


def test_build_transfer_maps_snapshot(snapshot):
    transfer = build_transfer(snapshot, "AT-12345678")

    assert transfer.booking_code == "AT-12345678"
    assert transfer.status == TransferStatus.pending
    assert transfer.pickup_location == "Ngurah Rai International Airport"
    assert transfer.dropoff_location == "Ubud Palace"
    assert transfer.from_location == {"latitude": -8.7467, "longitude": 115.1668}
    assert transfer.passenger == 3
    assert transfer.type == "MPV"
    assert transfer.distance == 20
    assert transfer.price == 154000
    assert transfer.driver_id == "d-1"
    assert transfer.vehicle_id == "v-d-1"
    assert transfer.vehicle_name == "Toyota Avanza"
    assert transfer.license_plate == "DK 1234 AB"
    assert transfer.payment_method == "cash"


def test_build_transfer_requires_contact(snapshot):
    snapshot.contact.phone = None
    with pytest.raises(StepValidationError) as info:
        build_transfer(snapshot, "AT-12345678")
    assert info.value.missing == ["phone"]


@pytest.mark.asyncio
async def test_submit_inserts_and_notifies(snapshot):
    store = AsyncMock()
    store.insert_transfer.side_effect = lambda transfer: _saved(transfer, 77)

    with patch("jobs.worker.notify_booking_created_task.kiq", new_callable=AsyncMock) as mock_kiq:
        transfer = await BookingSubmitter(store=store, policy=FAST).submit(snapshot)
        await _drain()

    assert transfer.id == 77
    assert store.insert_transfer.await_count == 1
    mock_kiq.assert_awaited_once_with(77)


@pytest.mark.asyncio
async def test_submit_retries_transient_failures(snapshot):
    store = AsyncMock()
    store.insert_transfer.side_effect = [PersistenceError("connection reset"), _saved(AirportTransfer(booking_code="x"), 5)]

    transfer = await BookingSubmitter(store=store, policy=FAST, notify=False).submit(snapshot)

    assert transfer.id == 5
    assert store.insert_transfer.await_count == 2
    # Every attempt carries the same booking code
    codes = {call.args[0].booking_code for call in store.insert_transfer.await_args_list}
    assert len(codes) == 1


@pytest.mark.asyncio
async def test_submit_raises_persistence_failure_when_exhausted(snapshot):
    store = AsyncMock()
    store.insert_transfer.side_effect = PersistenceError("db down")

    with pytest.raises(PersistenceFailure):
        await BookingSubmitter(store=store, policy=FAST, notify=False).submit(snapshot)
    assert store.insert_transfer.await_count == 3


@pytest.mark.asyncio
async def test_submit_does_not_retry_rejected_rows(snapshot):
    store = AsyncMock()
    store.insert_transfer.side_effect = ValidationError("duplicate key")

    with pytest.raises(PersistenceFailure):
        await BookingSubmitter(store=store, policy=FAST, notify=False).submit(snapshot)
    assert store.insert_transfer.await_count == 1


@pytest.mark.asyncio
async def test_submit_policy_override(snapshot):
    store = AsyncMock()
    store.insert_transfer.side_effect = PersistenceError("db down")

    with pytest.raises(PersistenceFailure):
        await BookingSubmitter(store=store, policy=FAST, notify=False).submit(snapshot, RetryPolicy(max_attempts=1))
    assert store.insert_transfer.await_count == 1


def _saved(transfer, transfer_id):
    transfer.id = transfer_id
    return transfer


async def _drain():
    import asyncio
    # Let the fire-and-forget notification task run
    await asyncio.sleep(0)
    await asyncio.sleep(0)
