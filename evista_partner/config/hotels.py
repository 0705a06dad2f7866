"""
Static hotel partner configuration. Each partner hotel gets one entry keyed
by its slug; prices come from the partnership MOU.
"""
from typing import Dict, Optional

from evista_partner.models.hotel import HotelConfig


RENTAL_DURATIONS = [
    {"value": "6_hours", "label": "6 Jam", "hours": 6},
    {"value": "12_hours", "label": "1 hari (12 Jam)", "hours": 12},
]

_CLASSIC_PICKUP = {
    "name": "Classic Hotel",
    "address": "Jl. Example No. 123, Jakarta",
    "lat": -6.2088,
    "lng": 106.8456,
}

_HOTELS = [
    {
        "name": "Classic Hotel",
        "slug": "classic-hotel",
        "contact": {
            "whatsapp": "+6287773845676",
            "email": "reservation@classichotel.com",
            "phone": "+62-21-XXXXXXX",
        },
        "location": _CLASSIC_PICKUP,
        "night_reservation_message": (
            "Halo, saya ingin melakukan reservasi kendaraan untuk penjemputan "
            "malam hari dari Classic Hotel."
        ),
        "fleet": [
            {"id": "fleet-economy-1", "name": "Wuling Bingou", "vehicle_class": "economy", "category": "sedan", "capacity": 4,
             "features": ["Compact Design", "City-Efficient", "Comfortable Seats"]},
            {"id": "fleet-economy-2", "name": "NETA V", "vehicle_class": "economy", "category": "suv", "capacity": 5,
             "features": ["Spacious Interior", "Smart Technology", "Eco-Friendly"]},
            {"id": "fleet-economy-3", "name": "BYD M6", "vehicle_class": "economy", "category": "mpv", "capacity": 7,
             "features": ["Family-Sized", "Ample Luggage", "Smooth Ride"]},
            {"id": "fleet-premium-1", "name": "BYD Seal", "vehicle_class": "premium", "category": "sedan", "capacity": 5,
             "features": ["Luxury Interior", "Advanced Safety", "Premium Sound"]},
            {"id": "fleet-premium-2", "name": "Hyundai Ioniq 5", "vehicle_class": "premium", "category": "suv", "capacity": 5,
             "features": ["Ultra-Fast Charging", "V2L Technology", "Panoramic Roof"]},
            {"id": "fleet-elite-1", "name": "BYD Denza D9", "vehicle_class": "elite", "category": "mpv", "capacity": 7,
             "features": ["Executive Seating", "Premium Materials", "Top-tier Comfort"]},
        ],
        "vehicle_classes": [
            {"id": "economy", "name": "Evista Economy+", "vehicles": ["Wuling Bingou", "NETA", "BYD M6"],
             "description": "Comfortable and efficient electric vehicles", "car_type_id": 9, "price_multiplier": 1.0},
            {"id": "premium", "name": "Evista Premium", "vehicles": ["BYD Seal", "Hyundai Ioniq"],
             "description": "Premium electric vehicles with enhanced comfort", "car_type_id": 2, "price_multiplier": 1.3},
            {"id": "elite", "name": "Evista Elite", "vehicles": ["BYD Denza"],
             "description": "Luxury electric vehicles for exclusive experience", "price_multiplier": 2.0},
        ],
        "routes": [
            {
                "id": "route-cgk",
                "name": "Classic Hotel ↔ Soekarno-Hatta",
                "short_name": "CGK Airport",
                "pickup": _CLASSIC_PICKUP,
                "destination": {"name": "Bandara Soekarno-Hatta", "address": "Terminal 2/3, Tangerang",
                                "lat": -6.1256, "lng": 106.6559},
                "estimated_duration": 60,
                "distance": 35,
                "pricing": {
                    "economy": {"one_way": 220000, "round_trip": 430000},
                    "premium": {"one_way": 290000, "round_trip": 570000},
                    "elite": {"one_way": 440000, "round_trip": 870000},
                },
            },
            {
                "id": "route-hlp",
                "name": "Classic Hotel ↔ Halim Perdanakusuma",
                "short_name": "HLP Airport",
                "pickup": _CLASSIC_PICKUP,
                "destination": {"name": "Bandara Halim Perdanakusuma", "address": "Halim Perdanakusuma, Jakarta Timur",
                                "lat": -6.2666, "lng": 106.8911},
                "estimated_duration": 45,
                "distance": 25,
                "pricing": {
                    "economy": {"one_way": 230000, "round_trip": 450000},
                    "premium": {"one_way": 360000, "round_trip": 710000},
                    "elite": {"one_way": 510000, "round_trip": 1000000},
                },
            },
        ],
        "return_locations": [
            {"value": "classic_hotel", "label": "Classic Hotel (Same as Pickup)",
             "lat": -6.2088, "lng": 106.8456, "address": "Jl. Example No. 123, Jakarta", "same_as_pickup": True},
            {"value": "halim_airport", "label": "Halim Perdanakusuma Airport (HLP)",
             "lat": -6.2666, "lng": 106.8911, "address": "Jakarta Timur"},
        ],
    },
]

HOTELS: Dict[str, HotelConfig] = {h["slug"]: HotelConfig.model_validate(h) for h in _HOTELS}


def get_hotel(slug: str) -> Optional[HotelConfig]:
    return HOTELS.get(slug)


def duration_hours(value: str) -> Optional[int]:
    for d in RENTAL_DURATIONS:
        if d["value"] == value:
            return d["hours"]
    return None
