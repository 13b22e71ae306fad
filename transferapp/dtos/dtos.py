from typing import TypedDict, Optional


class ActiveBookingRow(TypedDict):
    """A confirmed or on-ride transfer joined to its driver and vehicle."""
    transfer_id: int
    driver_id: str
    driver_name: Optional[str]
    driver_phone: Optional[str]
    driver_photo_url: Optional[str]
    vehicle_id: Optional[str]
    vehicle_type: Optional[str]
    make: Optional[str]
    model: Optional[str]
    color: Optional[str]
    license_plate: Optional[str]


class IdleDriverRow(TypedDict):
    driver_id: str
    driver_name: Optional[str]
    driver_phone: Optional[str]
    driver_photo_url: Optional[str]
    vehicle_id: Optional[str]
    vehicle_type: Optional[str]
    make: Optional[str]
    model: Optional[str]
    color: Optional[str]
    license_plate: Optional[str]


class PricingRow(TypedDict):
    price_km: object
    basic_price: object
    surcharge: object
