"""
Invoice Service – printable HTML invoice for a hotel payout
"""
import logging
import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from evista_partner.config.settings import settings
from evista_partner.models.payout import Payout
from evista_partner.utils.helpers import format_rupiah, now_local, to_local

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["rupiah"] = format_rupiah
_env.filters["local_date"] = lambda dt: to_local(dt).strftime("%d %b %Y") if dt else "-"


def find_payout(payouts, invoice_number: str) -> Optional[Payout]:
    for payout in payouts:
        if payout.invoice_number == invoice_number:
            return payout
    return None


def render_invoice(payout: Payout, hotel_name: str, hotel_slug: str) -> str:
    """HTML document that opens the print dialog when loaded"""
    template = _env.get_template("invoice.html")
    html = template.render(
        payout=payout,
        hotel_name=hotel_name,
        hotel_slug=hotel_slug,
        app_name=settings.APP_NAME,
        generated_at=now_local().strftime("%d %b %Y %H:%M"),
    )
    logger.info("🧾 Rendered invoice %s for %s", payout.invoice_number, hotel_slug)
    return html
