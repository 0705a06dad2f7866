"""
Booking rule routes – schedule checks, manual destination quotes and
passenger contact validation used by the booking form
"""
import logging

from fastapi import APIRouter, HTTPException

from evista_partner.config.hotels import get_hotel
from evista_partner.models.booking import (
    ContactValidationRequest,
    ContactValidationResponse,
    ManualQuoteRequest,
    ManualQuoteResponse,
    ScheduleValidation,
    ScheduleValidationRequest,
    ServiceType,
)
from evista_partner.services.pricing import distance_price, estimate_distance_km, round_trip_price
from evista_partner.services.schedule_validation import validate_schedule
from evista_partner.utils.helpers import format_rupiah, now_local
from evista_partner.utils.validators import is_email, is_whatsapp_number, whatsapp_digits

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/booking", tags=["Booking"])


@router.post("/schedule/validate", response_model=ScheduleValidation)
async def validate_booking_schedule(body: ScheduleValidationRequest):
    hotel = get_hotel(body.hotel_slug) if body.hotel_slug else None
    if body.hotel_slug and hotel is None:
        raise HTTPException(status_code=404, detail=f"Hotel '{body.hotel_slug}' not found")
    return validate_schedule(
        body.to_schedule(),
        now_local(),
        rental=body.service_type == ServiceType.RENTAL,
        hotel=hotel,
    )


@router.post("/quote/manual", response_model=ManualQuoteResponse)
async def quote_manual_destination(body: ManualQuoteRequest):
    """
    Price for a destination outside the fixed routes.

    Uses the backend's one-way price when given; otherwise estimates the
    distance from the hotel and applies the vehicle class multiplier.
    """
    distance_km = None
    if body.one_way_price is not None:
        one_way = body.one_way_price
    else:
        if not body.hotel_slug or body.destination is None:
            raise HTTPException(status_code=400, detail="Provide one_way_price or hotel_slug with destination")
        hotel = get_hotel(body.hotel_slug)
        if hotel is None:
            raise HTTPException(status_code=404, detail=f"Hotel '{body.hotel_slug}' not found")
        multiplier = 1.0
        if body.vehicle_class:
            vc = hotel.vehicle_class(body.vehicle_class)
            if vc is None:
                raise HTTPException(status_code=400, detail=f"Unknown vehicle class '{body.vehicle_class}'")
            multiplier = vc.price_multiplier
        distance_km = estimate_distance_km(
            hotel.location.lat, hotel.location.lng, body.destination.lat, body.destination.long
        )
        one_way = distance_price(distance_km, multiplier)

    rt = round_trip_price(one_way)
    price = rt if body.is_round_trip else one_way
    return ManualQuoteResponse(
        one_way_price=one_way,
        round_trip_price=rt,
        price=price,
        distance_km=distance_km,
        formatted=format_rupiah(price),
    )


@router.post("/contact/validate", response_model=ContactValidationResponse)
async def validate_contact(body: ContactValidationRequest):
    errors = {}
    if not (body.name or "").strip():
        errors["name"] = "Nama wajib diisi"
    if not body.whatsapp:
        errors["whatsapp"] = "Nomor WhatsApp wajib diisi"
    elif not is_whatsapp_number(body.whatsapp):
        errors["whatsapp"] = "Format nomor WhatsApp tidak valid"
    if body.email and not is_email(body.email):
        errors["email"] = "Format email tidak valid"

    return ContactValidationResponse(
        valid=not errors,
        errors=errors,
        whatsapp_normalized=whatsapp_digits(body.whatsapp) if "whatsapp" not in errors else None,
    )
