"""
Tiered airport-transfer fare.

Up to BASE_DISTANCE_KM the fare is flat (basic price plus surcharge); beyond
it every extra kilometre is charged at the vehicle's per-km rate.
"""
import logging
from typing import Mapping, Optional

from utils.utils import to_number
from wizard._state.domain import FareQuote, PricingProfile, RouteEstimate

logger = logging.getLogger(__name__)

BASE_DISTANCE_KM = 8

DEFAULT_PRICING_PROFILE = PricingProfile(price_per_km=3250, basic_price=75000, surcharge=40000)


def fare(distance_km, price_per_km, basic_price, surcharge) -> float:
    """
    Total price for a transfer. Returns 0 when any input is not a finite
    number; the caller decides whether to retry with default pricing.
    """
    distance = to_number(distance_km)
    per_km = to_number(price_per_km)
    basic = to_number(basic_price)
    extra = to_number(surcharge)

    if distance is None or per_km is None or basic is None or extra is None:
        return 0

    distance = round(distance, 1)

    if distance <= BASE_DISTANCE_KM:
        total = basic + extra
    else:
        total = basic + (distance - BASE_DISTANCE_KM) * per_km + extra

    return max(total, 0)


def quote(route: RouteEstimate, profile: PricingProfile) -> FareQuote:
    return FareQuote(total=fare(route.distance_km, profile.price_per_km, profile.basic_price, profile.surcharge))


def resolve_pricing(row: Optional[Mapping], vehicle_type: Optional[str] = None) -> PricingProfile:
    """
    Turns a raw pricing-store row into a PricingProfile. A missing row or any
    non-numeric column yields DEFAULT_PRICING_PROFILE, logged so stale pricing
    configuration shows up in the logs.
    """
    if not row:
        logger.warning(f"No pricing configured for vehicle type {vehicle_type!r}, using default profile")
        return DEFAULT_PRICING_PROFILE

    price_per_km = to_number(row.get("price_km"))
    basic_price = to_number(row.get("basic_price"))
    surcharge = to_number(row.get("surcharge"))

    if price_per_km is None or basic_price is None or surcharge is None:
        logger.warning(
            f"Invalid pricing for vehicle type {vehicle_type!r} "
            f"(price_km={row.get('price_km')!r}, basic_price={row.get('basic_price')!r}, "
            f"surcharge={row.get('surcharge')!r}), using default profile"
        )
        return DEFAULT_PRICING_PROFILE

    return PricingProfile(price_per_km=price_per_km, basic_price=basic_price, surcharge=surcharge)
