"""
Schedule validation: lead time, return after pickup, and the night-service
window. Results are data; nothing here raises for a bad schedule.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional

from evista_partner.config.settings import settings
from evista_partner.models.booking import Schedule, ScheduleValidation
from evista_partner.models.hotel import HotelConfig
from evista_partner.utils.helpers import localize
from evista_partner.utils.whatsapp import is_night_hour, support_link


def combine(day: date, at: time) -> datetime:
    """Wall-clock date and time in Asia/Jakarta"""
    return localize(datetime.combine(day, at))


def minimum_pickup(now: datetime, rental: bool = False) -> datetime:
    if rental:
        return now + timedelta(hours=settings.RENTAL_MIN_LEAD_HOURS)
    return now + timedelta(minutes=settings.MIN_LEAD_MINUTES)


def pickup_too_early(day: date, at: time, now: datetime, rental: bool = False) -> bool:
    """
    The lead time only binds on the earliest allowed date; later dates have
    no time floor and earlier dates are never allowed.
    """
    min_dt = minimum_pickup(localize(now), rental)
    if day < min_dt.date():
        return True
    if day == min_dt.date():
        return at < min_dt.time().replace(second=0, microsecond=0)
    return False


def return_invalid(schedule: Schedule) -> bool:
    if schedule.return_date < schedule.pickup_date:
        return True
    if schedule.return_date == schedule.pickup_date:
        return schedule.return_time <= schedule.pickup_time
    return False


def night_status(moment: datetime, now: datetime) -> Optional[str]:
    """'blocked' inside the urgent window, 'advisory' further out, None outside night hours"""
    if not is_night_hour(moment.hour):
        return None
    hours_until = (moment - localize(now)).total_seconds() / 3600
    if hours_until < settings.URGENT_NIGHT_WINDOW_HOURS:
        return "blocked"
    return "advisory"


def is_complete(schedule: Schedule) -> bool:
    if not (schedule.pickup_date and schedule.pickup_time):
        return False
    if schedule.is_round_trip:
        return bool(schedule.return_date and schedule.return_time)
    return True


def validate_schedule(
    schedule: Schedule,
    now: datetime,
    rental: bool = False,
    hotel: Optional[HotelConfig] = None,
) -> ScheduleValidation:
    result = ScheduleValidation()
    if not (schedule.pickup_date and schedule.pickup_time):
        return result

    messages = []
    if pickup_too_early(schedule.pickup_date, schedule.pickup_time, now, rental):
        result.pickup_too_early = True
        if rental:
            messages.append("Rental harus dipesan minimal 6 jam sebelum waktu penjemputan.")
        else:
            messages.append("Waktu penjemputan minimal 1 jam dari sekarang.")

    statuses = [night_status(combine(schedule.pickup_date, schedule.pickup_time), now)]

    round_trip = schedule.is_round_trip and not rental
    return_ready = bool(schedule.return_date and schedule.return_time)
    if round_trip and return_ready:
        if return_invalid(schedule):
            result.return_invalid = True
            messages.append("Waktu kembali harus setelah waktu penjemputan.")
        statuses.append(night_status(combine(schedule.return_date, schedule.return_time), now))

    if "blocked" in statuses:
        result.night_blocked = True
        result.support_link = support_link(hotel)
        messages.append(
            "Layanan malam (00:00-06:00) kurang dari 24 jam harus dikonfirmasi admin via WhatsApp."
        )
    elif "advisory" in statuses:
        result.night_advisory = True
        messages.append("Penjemputan malam hari (00:00-06:00): driver akan dikonfirmasi oleh admin.")

    result.complete = not round_trip or return_ready
    result.messages = messages
    return result
