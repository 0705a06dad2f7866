"""
Evista backend client

Thin async wrapper over the backend REST API used by the booking flow and the
admin summaries. A 401 clears the cached token and the call is retried once.
"""
import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from evista_partner.config.settings import settings

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Non-2xx answer (or unusable body) from the Evista backend"""

    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def __str__(self):
        return f"{self.message} (HTTP {self.status_code})"


class TokenProvider(Protocol):
    async def get_token(self) -> str: ...
    def clear_token(self) -> None: ...


def _error_message(resp: httpx.Response) -> tuple:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}", resp.text
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or f"HTTP {resp.status_code}", body
    return f"HTTP {resp.status_code}", body


class EvistaClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        tokens: Optional[TokenProvider] = None,
        base_url: str = settings.EVISTA_API_URL,
        authorization: Optional[str] = None,
    ):
        self.http = http
        self.tokens = tokens
        self.base_url = base_url.rstrip("/")
        # Caller-supplied header (admin routes) wins over the token provider
        self.authorization = authorization

    async def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if auth and self.authorization:
            headers["Authorization"] = self.authorization
        elif auth and self.tokens is not None:
            headers["Authorization"] = f"Bearer {await self.tokens.get_token()}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        auth: bool = True,
    ) -> Any:
        url = f"{self.base_url}{path}"
        for attempt in range(2):
            try:
                headers = await self._headers(auth)
                resp = await self.http.request(
                    method, url, json=json, params=params, headers=headers, timeout=settings.REQUEST_TIMEOUT
                )
            except httpx.HTTPError as e:
                logger.error("❌ %s %s failed: %s", method, path, e)
                raise BackendError(503, "Evista backend unreachable", str(e))

            if resp.status_code == 401 and auth and attempt == 0 and self.tokens is not None and not self.authorization:
                logger.warning("Unauthorized %s %s, clearing token and retrying", method, path)
                self.tokens.clear_token()
                continue

            if resp.status_code >= 400:
                message, details = _error_message(resp)
                logger.error("❌ %s %s -> %s: %s", method, path, resp.status_code, message)
                raise BackendError(resp.status_code, message, details)

            try:
                return resp.json()
            except ValueError:
                raise BackendError(502, "Invalid JSON from Evista backend", resp.text)

        raise BackendError(401, "Unauthorized")

    # ─── Cars ─────────────────────────────────────────────────────────────────

    async def list_cars(self, order_type: str = "later") -> List[dict]:
        data = await self.request("GET", "/api/car/list", params={"order_type": order_type})
        cars = data.get("data", []) if isinstance(data, dict) else data
        return cars if isinstance(cars, list) else []

    async def select_car(self, type_id: int, order_type: str) -> dict:
        return await self.request("POST", "/api/car/submit", json={"type_id": type_id, "order_type": order_type})

    # ─── Locations & trip ─────────────────────────────────────────────────────

    async def select_pickup(self, lat: float, long: float, label: str, order_type: str, note: str = "") -> dict:
        body = {"from": "manual", "order_type": order_type, "lat": lat, "long": long, "label": label, "note": note}
        return await self.request("POST", "/api/pickup/selectpickup", json=body)

    async def select_destination(self, lat: float, long: float, label: str, order_type: str, note: str = "-") -> dict:
        body = {"from": "manual", "order_type": order_type, "lat": lat, "long": long, "label": label, "note": note or "-"}
        return await self.request("POST", "/api/destination/selectlocation", json=body)

    async def set_round_trip(self, is_round_trip: bool) -> dict:
        return await self.request("POST", "/api/trip/roundtrip/set", json={"is_round_trip": 1 if is_round_trip else 0})

    async def submit_trip(self, payload: dict):
        """Create the order; returns the backend order id."""
        data = await self.request("POST", "/api/trip/submit", json=payload)
        code = data.get("code", 200) if isinstance(data, dict) else 200
        if code != 200:
            raise BackendError(code, data.get("message") or "Failed to create booking order", data)
        order_id = (data.get("data") or {}).get("id") if isinstance(data, dict) else None
        if not order_id:
            raise BackendError(502, "No order ID returned", data)
        return order_id

    async def search_place(self, q: str) -> dict:
        return await self.request("GET", "/api/location/searchplace", params={"q": q})

    # ─── Checkout ─────────────────────────────────────────────────────────────

    async def checkout_overview(self) -> dict:
        return await self.request("GET", "/api/checkout/v3/overview")

    async def pay(self, body: dict) -> dict:
        return await self.request("POST", "/apiv3/checkout/pay", json=body)

    async def payment_detail(self, order_id) -> dict:
        return await self.request("GET", f"/apiv3/checkout/paymentdetail/{order_id}")

    # ─── Profile ──────────────────────────────────────────────────────────────

    async def update_profile(self, fullname: str, phone: str) -> dict:
        body = {
            "fullname": fullname or "Guest User",
            "phone": phone or "",
            "gender": "male",
            "profile_picture_media_id": 1,
        }
        return await self.request("POST", "/api/sauth/myprofile", json=body)

    # ─── Hotel admin ──────────────────────────────────────────────────────────

    async def hotel_transactions(self, slug: str, month: Optional[str] = None, page: int = 1,
                                 per_page: int = settings.TRANSACTIONS_PER_PAGE) -> dict:
        params = {"page": page, "per_page": per_page}
        if month:
            params["month"] = month
        return await self.request("GET", f"/api/v4/hotel/{slug}/transactions", params=params)

    async def all_hotel_transactions(self, slug: str, month: Optional[str] = None) -> dict:
        """Every page of the month, concatenated into one payload"""
        rows: List[dict] = []
        first = None
        previous = None
        for page in range(1, settings.TRANSACTIONS_MAX_PAGES + 1):
            payload = await self.hotel_transactions(slug, month=month, page=page)
            first = first or payload
            data = payload.get("data", {}) if isinstance(payload, dict) else {}
            batch = data.get("transactions", []) if isinstance(data, dict) else []
            if batch and batch == previous:
                logger.warning("Transactions page %s of %s repeats page %s, stopping", page, slug, page - 1)
                break
            rows.extend(batch)
            previous = batch
            total = data.get("total_bookings") if isinstance(data, dict) else None
            if not batch or len(batch) < settings.TRANSACTIONS_PER_PAGE or (total is not None and len(rows) >= total):
                break
        else:
            logger.warning("Transactions of %s truncated at %s pages", slug, settings.TRANSACTIONS_MAX_PAGES)
        merged = dict(first or {})
        merged["data"] = {**(merged.get("data") or {}), "transactions": rows}
        return merged

    async def hotel_payouts(self, slug: str) -> dict:
        return await self.request("GET", f"/api/v4/hotel/{slug}/payouts")
