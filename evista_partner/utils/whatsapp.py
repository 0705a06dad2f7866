"""
WhatsApp message helpers for night-service requests and admin notifications
"""
from typing import Optional
from urllib.parse import quote

from evista_partner.config.hotels import RENTAL_DURATIONS
from evista_partner.config.settings import settings
from evista_partner.models.booking import RentalBooking
from evista_partner.models.hotel import HotelConfig
from evista_partner.utils.helpers import format_rupiah
from evista_partner.utils.validators import whatsapp_digits

SEPARATOR = "━━━━━━━━━━━━━━━━━━━"


def build_link(phone: str, message: str = "") -> str:
    """wa.me link with a pre-filled message"""
    link = f"https://wa.me/{whatsapp_digits(phone)}"
    if message:
        link += f"?text={quote(message, safe='')}"
    return link


def support_link(hotel: Optional[HotelConfig] = None) -> str:
    phone = hotel.contact.whatsapp if hotel else settings.SUPPORT_WHATSAPP
    message = hotel.night_reservation_message if hotel else ""
    return build_link(phone, message)


def is_night_hour(hour: int) -> bool:
    return settings.NIGHT_START_HOUR <= hour < settings.NIGHT_END_HOUR


def _duration_label(value: Optional[str]) -> str:
    for d in RENTAL_DURATIONS:
        if d["value"] == value:
            return d["label"]
    return value or "-"


def _return_label(hotel: Optional[HotelConfig], value: Optional[str]) -> str:
    loc = hotel.return_location(value) if hotel and value else None
    return loc.label if loc else "-"


def _vehicle_label(draft) -> str:
    if draft.car is not None:
        return draft.car.name or f"Car #{draft.car.id}"
    if draft.vehicle_class:
        return f"Kelas {draft.vehicle_class.upper()}"
    return "-"


def _route_label(hotel: Optional[HotelConfig], draft) -> str:
    route_id = getattr(draft, "route_id", None)
    if hotel and route_id:
        route = hotel.route(route_id)
        if route:
            return route.name
    destination = getattr(draft, "destination", None)
    if destination is not None:
        return destination.label
    return "Airport Transfer"


def _fmt_time(value) -> str:
    return value.strftime("%H:%M") if value else "-"


def urgent_night_message(draft, booking_id: str = "PENDING", hotel: Optional[HotelConfig] = None) -> str:
    """Message the guest sends to admin to confirm a night pickup by hand"""
    schedule = draft.schedule
    passenger = draft.passenger
    hotel_name = hotel.name if hotel else "Classic Hotel"
    lines = ["Halo Admin,", ""]

    if isinstance(draft, RentalBooking):
        lines += [
            "Saya baru saja melakukan pembayaran untuk sewa mobil dan butuh konfirmasi untuk penjemputan malam hari.",
            "",
            "Detail Pemesanan:",
            f"📋 Booking ID: {booking_id}",
            "",
            "Jadwal Rental:",
            f"📅 Tanggal: {schedule.pickup_date}",
            f"🕐 Jam Jemput: {_fmt_time(schedule.pickup_time)} (Malam Hari)",
            f"⏱️ Durasi: {_duration_label(draft.duration)}",
            "",
            "Kendaraan:",
            f"🚗 {_vehicle_label(draft)}",
            "👨 Dengan Sopir" if draft.with_driver else "🔑 Lepas Kunci (Self Drive)",
            "",
            "Lokasi:",
            f"📍 Jemput: {hotel_name}",
            f"📍 Kembali: {_return_label(hotel, draft.return_location)}",
        ]
    else:
        trip = (
            f"🔄 Pulang-Pergi\n   Kembali: {schedule.return_date} jam {_fmt_time(schedule.return_time)}"
            if schedule.is_round_trip else "➡️ Sekali Jalan"
        )
        lines += [
            "Saya baru saja melakukan pembayaran untuk airport transfer dan butuh konfirmasi untuk penjemputan malam hari.",
            "",
            "Detail Pemesanan:",
            f"📋 Booking ID: {booking_id}",
            f"🏨 Hotel: {hotel_name}",
            "",
            "Jadwal Transfer:",
            f"📅 Tanggal: {schedule.pickup_date}",
            f"🕐 Jam Jemput: {_fmt_time(schedule.pickup_time)} (Malam Hari)",
            trip,
            "",
            "Rute & Kendaraan:",
            f"🛣️ {_route_label(hotel, draft)}",
            f"🚗 {_vehicle_label(draft)}",
        ]

    lines += [
        "",
        "Data Pemesan:",
        f"👤 {passenger.name if passenger else '-'}",
        f"📱 {passenger.whatsapp if passenger else '-'}",
        "",
        "Mohon konfirmasi ketersediaan sopir untuk jam malam ini ya. Terima kasih! 🙏",
    ]
    return "\n".join(lines)


def admin_notification_message(draft, booking_id: str, amount: int, hotel: Optional[HotelConfig] = None) -> str:
    """Automatic notification sent to the admin number after a successful payment"""
    schedule = draft.schedule
    passenger = draft.passenger
    hotel_name = hotel.name if hotel else "Classic Hotel"
    night = schedule.pickup_time is not None and is_night_hour(schedule.pickup_time.hour)
    is_rental = isinstance(draft, RentalBooking)

    lines = [f"🔔 PEMESANAN BARU - {'RENTAL MOBIL' if is_rental else 'AIRPORT TRANSFER'}", "", f"📋 ID: {booking_id}"]
    if not is_rental:
        lines.append(f"🏨 Hotel: {hotel_name}")
    if night:
        lines.append("⚠️ NIGHT SERVICE (00:00-06:00)")
    lines += ["", SEPARATOR, ""]

    if is_rental:
        lines += [
            "📅 JADWAL RENTAL",
            f"• Tanggal: {schedule.pickup_date}",
            f"• Jam Jemput: {_fmt_time(schedule.pickup_time)}",
            f"• Durasi: {_duration_label(draft.duration)}",
            "",
            "🚗 KENDARAAN",
            f"• {_vehicle_label(draft)}",
            f"• {'Dengan Sopir' if draft.with_driver else 'Lepas Kunci'}",
            "",
            "📍 LOKASI",
            f"• Jemput: {hotel_name}",
            f"• Kembali: {_return_label(hotel, draft.return_location)}",
        ]
    else:
        lines += [
            "📅 JADWAL TRANSFER",
            f"• Tanggal: {schedule.pickup_date}",
            f"• Jam Jemput: {_fmt_time(schedule.pickup_time)}",
            f"• Tipe: {'Pulang-Pergi (Round Trip)' if schedule.is_round_trip else 'Sekali Jalan (One Way)'}",
        ]
        if schedule.is_round_trip:
            lines.append(f"• Kembali: {schedule.return_date} jam {_fmt_time(schedule.return_time)}")
        lines += [
            "",
            "🛣️ RUTE & KENDARAAN",
            f"• {_route_label(hotel, draft)}",
            f"• {_vehicle_label(draft)}",
        ]

    lines += [
        "",
        "👤 PEMESAN",
        f"• Nama: {passenger.name if passenger else '-'}",
        f"• WhatsApp: {passenger.whatsapp if passenger else '-'}",
    ]
    if passenger and passenger.email:
        lines.append(f"• Email: {passenger.email}")
    lines += [
        "",
        "💰 PEMBAYARAN",
        f"• Total: {format_rupiah(amount)}",
        "• Status: LUNAS ✅",
        "",
        SEPARATOR,
        "Notifikasi otomatis dari sistem",
    ]
    return "\n".join(lines)
