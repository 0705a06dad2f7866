"""
Hotel admin routes

Proxies the hotel, routes, transactions and payouts endpoints and computes
the commission summary, payout totals and printable invoices on top of them.
"""
import logging
import re
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from evista_partner.config.hotels import get_hotel
from evista_partner.config.http_client import get_http_client
from evista_partner.models.commission import CommissionSummaryResponse
from evista_partner.services.backend_client import BackendError, EvistaClient
from evista_partner.services.commission_service import (
    parse_payouts,
    parse_transactions,
    summarize_commissions,
    summarize_payouts,
    tier_progress,
)
from evista_partner.services.invoice_service import find_payout, render_invoice
from evista_partner.services.proxy import error_response, forward, pick_params
from evista_partner.utils.helpers import current_month

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hotel", tags=["Hotel Admin"])

MONTH_RGX = r"^\d{4}-(0[1-9]|1[0-2])$"


def _client(request: Request, http: httpx.AsyncClient) -> EvistaClient:
    return EvistaClient(http, authorization=request.headers.get("authorization"))


def _backend_failure(e: BackendError):
    return error_response(e.status_code, e.message, e.details)


# ─── Proxied ──────────────────────────────────────────────────────────────────

@router.get("/{slug}")
async def get_hotel_info(slug: str, request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await forward(http, request, "GET", f"/api/hotel/{slug}", label="Hotel", require_auth=False)


@router.get("/{slug}/routes")
async def get_hotel_routes(slug: str, request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await forward(http, request, "GET", f"/api/hotel/{slug}/routes", label="Hotel Routes", require_auth=False)


@router.get("/{slug}/transactions")
async def get_transactions(slug: str, request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    params = pick_params(request, ["month", "page", "per_page"])
    return await forward(
        http, request, "GET", f"/api/v4/hotel/{slug}/transactions",
        label="Transactions", require_auth=False, params=params,
    )


@router.get("/{slug}/payouts")
async def get_payouts(slug: str, request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await forward(http, request, "GET", f"/api/v4/hotel/{slug}/payouts", label="Payouts", require_auth=False)


# ─── Computed ─────────────────────────────────────────────────────────────────

@router.get("/{slug}/commission-summary")
async def commission_summary(
    slug: str,
    request: Request,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Tier breakdown of the month's paid transactions and the progress towards the next tier."""
    month = month or current_month()
    if not re.match(MONTH_RGX, month):
        return error_response(400, "Invalid month, expected YYYY-MM", month)

    try:
        payload = await _client(request, http).all_hotel_transactions(slug, month=month)
    except BackendError as e:
        return _backend_failure(e)

    transactions = parse_transactions(payload)
    summary = summarize_commissions(transactions)
    paid_count = summary.total_paid_trx if summary else 0
    logger.info("📊 Commission summary %s %s: %s paid transactions", slug, month, paid_count)
    return CommissionSummaryResponse(month=month, summary=summary, tier_progress=tier_progress(paid_count))


@router.get("/{slug}/payouts/summary")
async def payout_summary(slug: str, request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    try:
        payload = await _client(request, http).hotel_payouts(slug)
    except BackendError as e:
        return _backend_failure(e)
    return summarize_payouts(parse_payouts(payload))


@router.get("/{slug}/payouts/{invoice_number}/invoice", response_class=HTMLResponse)
async def payout_invoice(
    slug: str,
    invoice_number: str,
    request: Request,
    http: httpx.AsyncClient = Depends(get_http_client),
):
    """Printable invoice; the page opens the print dialog on load."""
    try:
        payload = await _client(request, http).hotel_payouts(slug)
    except BackendError as e:
        return _backend_failure(e)

    payout = find_payout(parse_payouts(payload), invoice_number)
    if payout is None:
        return error_response(404, "Invoice not found", invoice_number)

    hotel = get_hotel(slug)
    html = render_invoice(payout, hotel.name if hotel else slug, slug)
    return HTMLResponse(content=html)
