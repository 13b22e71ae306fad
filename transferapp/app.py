import logging
import os
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Query

from controllers.transfer_controller import (
    ContactUpdate,
    RequestUpdate,
    TransferController,
    VehicleTypeUpdate,
)
from jobs.worker import broker
from services.geolocation_service import SUGGESTION_LIMIT, LocationParams
from wizard._state import Coordinate, WizardSnapshot

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
transfer_controller = TransferController()


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Start Taskiq broker so tasks can be enqueued
    await broker.startup()

    yield

    # Shutdown broker gracefully
    await broker.shutdown()

app = FastAPI(lifespan=lifespan)


@app.get("/health")
async def health():
    return {"Health": "OK"}


@app.get("/geocode", response_model=Optional[Coordinate])
async def geocode(address: str = Query(..., min_length=1)):
    return await transfer_controller.geocode(address)


@app.get("/geocode/suggest", response_model=List[LocationParams])
async def suggest_addresses(q: str = Query(""), limit: int = Query(SUGGESTION_LIMIT, ge=1, le=10)):
    return await transfer_controller.suggest_addresses(q, limit)


@app.get("/geocode/reverse", response_model=Optional[LocationParams])
async def reverse_geocode(latitude: float, longitude: float):
    return await transfer_controller.reverse_geocode(latitude, longitude)


@app.get("/transfers/{session_id}", response_model=WizardSnapshot)
async def get_transfer(session_id: str):
    return await transfer_controller.get_state(session_id)


@app.patch("/transfers/{session_id}/request", response_model=WizardSnapshot)
async def update_request(session_id: str, body: RequestUpdate):
    return await transfer_controller.update_request(session_id, body)


@app.post("/transfers/{session_id}/swap", response_model=WizardSnapshot)
async def swap_addresses(session_id: str):
    return await transfer_controller.swap_addresses(session_id)


@app.put("/transfers/{session_id}/vehicle-type", response_model=WizardSnapshot)
async def set_vehicle_type(session_id: str, body: VehicleTypeUpdate):
    return await transfer_controller.set_vehicle_type(session_id, body)


@app.post("/transfers/{session_id}/search", response_model=WizardSnapshot)
async def retry_search(session_id: str):
    return await transfer_controller.retry_search(session_id)


@app.post("/transfers/{session_id}/drivers/{candidate_id}", response_model=WizardSnapshot)
async def select_driver(session_id: str, candidate_id: str):
    return await transfer_controller.select_driver(session_id, candidate_id)


@app.put("/transfers/{session_id}/contact", response_model=WizardSnapshot)
async def set_contact(session_id: str, body: ContactUpdate):
    return await transfer_controller.set_contact(session_id, body)


@app.post("/transfers/{session_id}/next", response_model=WizardSnapshot)
async def next_step(session_id: str):
    return await transfer_controller.next_step(session_id)


@app.post("/transfers/{session_id}/back", response_model=WizardSnapshot)
async def previous_step(session_id: str):
    return await transfer_controller.previous_step(session_id)


@app.delete("/transfers/{session_id}", response_model=WizardSnapshot)
async def reset_transfer(session_id: str):
    return await transfer_controller.reset(session_id)


if __name__ == "__main__":
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
