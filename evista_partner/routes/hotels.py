"""
Partner hotel configuration and tariff lookups (served locally)
"""
from datetime import date, time
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from evista_partner.config.hotels import HOTELS, RENTAL_DURATIONS, get_hotel
from evista_partner.models.hotel import HotelConfig
from evista_partner.services.pricing import fixed_route_price, rental_price, rental_return_time
from evista_partner.services.schedule_validation import combine
from evista_partner.utils.helpers import format_rupiah

router = APIRouter(prefix="/hotels", tags=["Hotels"])


def _hotel_or_404(slug: str) -> HotelConfig:
    hotel = get_hotel(slug)
    if hotel is None:
        raise HTTPException(status_code=404, detail=f"Hotel '{slug}' not found")
    return hotel


@router.get("")
async def list_hotels():
    return [{"slug": h.slug, "name": h.name} for h in HOTELS.values()]


@router.get("/{slug}", response_model=HotelConfig)
async def get_hotel_config(slug: str):
    return _hotel_or_404(slug)


@router.get("/{slug}/routes/{route_id}/price")
async def route_price(
    slug: str,
    route_id: str,
    vehicle_class: str = Query(...),
    round_trip: bool = Query(False),
):
    hotel = _hotel_or_404(slug)
    if hotel.route(route_id) is None:
        raise HTTPException(status_code=404, detail=f"Route '{route_id}' not found")

    price = fixed_route_price(hotel, route_id, vehicle_class, round_trip)
    if price is None:
        raise HTTPException(status_code=400, detail=f"No tariff for vehicle class '{vehicle_class}' on this route")
    return {
        "route_id": route_id,
        "vehicle_class": vehicle_class,
        "is_round_trip": round_trip,
        "price": price,
        "formatted": format_rupiah(price),
    }


@router.get("/{slug}/rental-quote")
async def rental_quote(
    slug: str,
    vehicle_id: str = Query(...),
    duration: str = Query(...),
    with_driver: bool = Query(True),
    pickup_date: Optional[date] = Query(None),
    pickup_time: Optional[time] = Query(None),
):
    """Rental price from the pricing matrix, plus the return time when the pickup is known."""
    hotel = _hotel_or_404(slug)
    if hotel.fleet_vehicle(vehicle_id) is None:
        raise HTTPException(status_code=404, detail=f"Vehicle '{vehicle_id}' not found")
    if duration not in [d["value"] for d in RENTAL_DURATIONS]:
        raise HTTPException(status_code=400, detail=f"Unknown rental duration '{duration}'")

    price = rental_price(vehicle_id, duration, with_driver)
    return_time = ""
    if pickup_date and pickup_time:
        return_time = rental_return_time(combine(pickup_date, pickup_time), duration)
    return {
        "vehicle_id": vehicle_id,
        "duration": duration,
        "with_driver": with_driver,
        "price": price,
        "formatted": format_rupiah(price),
        "return_time": return_time,
    }
