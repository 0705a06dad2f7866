"""
Helper utility functions
"""
import hashlib
from datetime import datetime
from typing import Optional, Union

import pytz

from evista_partner.config.settings import settings

WIB = pytz.timezone(settings.TIMEZONE)


def now_local() -> datetime:
    """Current time in Asia/Jakarta"""
    return datetime.now(pytz.utc).astimezone(WIB)


def to_local(value: datetime) -> datetime:
    """Convert a datetime to Asia/Jakarta. Naive values are assumed to be UTC."""
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(WIB)


def localize(value: datetime) -> datetime:
    """Attach the Asia/Jakarta zone to a naive wall-clock datetime"""
    if value.tzinfo is not None:
        return value.astimezone(WIB)
    return WIB.localize(value)


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse backend timestamps ('2026-01-15 10:00:00', ISO 8601 with or without offset)"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_local(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        # Backend wall-clock strings are local time
        return WIB.localize(dt)
    return dt.astimezone(WIB)


def format_backend_datetime(value: datetime) -> str:
    """Format as the backend expects: YYYY-MM-DD HH:MM:SS"""
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_rupiah(amount: Union[int, float, None]) -> str:
    """Format an amount as Indonesian Rupiah, e.g. 'Rp 1.250.000'"""
    if amount is None:
        return "Rp 0"
    value = int(round(amount))
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,}".replace(",", ".")
    return f"{sign}Rp {grouped}"


def current_month(now: Optional[datetime] = None) -> str:
    """Month key used by the transactions endpoint: YYYY-MM"""
    now = now or now_local()
    return f"{now.year}-{now.month:02d}"


def env_suffix(base_url: str) -> str:
    """Short hash of the backend URL so tokens never leak across environments"""
    return hashlib.sha256(base_url.encode("utf-8")).hexdigest()[:8]
