"""
Pricing rules for transfers and rentals.

Fixed routes carry their own one-way / round-trip tariffs. Manually searched
destinations are priced one-way by the backend (or estimated from distance)
and get the round-trip rule applied locally.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from evista_partner.config.hotels import duration_hours
from evista_partner.config.settings import settings
from evista_partner.models.hotel import HotelConfig
from evista_partner.utils.helpers import format_backend_datetime

logger = logging.getLogger(__name__)

BASE_RATE_PER_KM = 15000
EARTH_RADIUS_KM = 6371
ROAD_BUFFER = 1.3

# Rental prices per fleet vehicle (MOU table, commission included)
RENTAL_PRICING_MATRIX = {
    "fleet-economy-1": {"6_hours": (700000, 500000), "12_hours": (1100000, 700000)},
    "fleet-economy-2": {"6_hours": (700000, 500000), "12_hours": (1100000, 700000)},
    "fleet-economy-3": {"6_hours": (700000, 500000), "12_hours": (1100000, 700000)},
    "fleet-premium-1": {"6_hours": (1200000, 900000), "12_hours": (2100000, 1800000)},
    "fleet-premium-2": {"6_hours": (1200000, 900000), "12_hours": (2100000, 1800000)},
    "fleet-elite-1": {"6_hours": (1500000, 1300000), "12_hours": (2800000, 2500000)},
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round_trip_price(one_way: int) -> int:
    """(one-way x 2) - 10.000. Manual destinations only; no guard for non-positive input."""
    return one_way * 2 - settings.ROUND_TRIP_DISCOUNT


def fixed_route_price(hotel: HotelConfig, route_id: str, vehicle_class: str, is_round_trip: bool) -> Optional[int]:
    route = hotel.route(route_id)
    if route is None:
        return None
    tariff = route.pricing.get(vehicle_class)
    if tariff is None:
        return None
    return tariff.round_trip if is_round_trip else tariff.one_way


def estimate_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> int:
    """Haversine distance plus a 30% buffer for the road network, in whole km"""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return _round_half_up(EARTH_RADIUS_KM * c * ROAD_BUFFER)


def distance_price(distance_km: float, multiplier: float = 1.0) -> int:
    return _round_half_up(BASE_RATE_PER_KM * distance_km * (multiplier or 1))


def manual_destination_price(distance_km: float, multiplier: float = 1.0, is_round_trip: bool = False) -> int:
    one_way = distance_price(distance_km, multiplier)
    if is_round_trip:
        return round_trip_price(one_way)
    return one_way


def manual_car_price(one_way: Optional[int], is_round_trip: bool) -> Optional[int]:
    """Price shown for a backend car on a manual destination"""
    if one_way is None:
        return None
    return round_trip_price(one_way) if is_round_trip else one_way


def rental_price(vehicle_id: str, duration: str, with_driver: bool) -> int:
    vehicle_pricing = RENTAL_PRICING_MATRIX.get(vehicle_id)
    if vehicle_pricing is None:
        logger.warning("No rental pricing found for vehicle: %s", vehicle_id)
        return 0
    prices = vehicle_pricing.get(duration)
    if prices is None:
        logger.warning("No rental pricing found for duration: %s", duration)
        return 0
    driver, self_drive = prices
    return driver if with_driver else self_drive


def rental_return_time(pickup: datetime, duration: str) -> str:
    """Pickup plus the rental duration, as YYYY-MM-DD HH:MM:SS; '' for unknown durations"""
    hours = duration_hours(duration)
    if hours is None:
        return ""
    return format_backend_datetime(pickup + timedelta(hours=hours))
