"""
Pass-through helper for the proxy routes.

Forwards a browser request to the Evista backend with the caller's
Authorization header and returns the backend JSON unchanged. Failures are
answered as ``{"error": ..., "details": ...}`` with the upstream status, or
500 when the fault is local.
"""
import logging
from typing import Any, Dict, Iterable, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from evista_partner.config.settings import settings

logger = logging.getLogger(__name__)

AUTH_REQUIRED = {"error": "Authorization header required"}


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def pick_params(request: Request, allowed: Iterable[str], defaults: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Only the allow-listed, non-empty query parameters"""
    params = dict(defaults or {})
    for key in allowed:
        value = request.query_params.get(key)
        if value:
            params[key] = value
    return params


def _details(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


async def forward(
    http: httpx.AsyncClient,
    request: Request,
    method: str,
    path: str,
    *,
    label: str,
    require_auth: bool = True,
    json: Any = None,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """Call the backend; returns its JSON or a JSONResponse describing the failure"""
    auth = request.headers.get("authorization")
    if require_auth and not auth:
        return JSONResponse(status_code=401, content=AUTH_REQUIRED)

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth:
        headers["Authorization"] = auth

    url = f"{settings.EVISTA_API_URL}{path}"
    logger.info("[%s] %s %s", label, method, url)
    try:
        resp = await http.request(method, url, headers=headers, json=json, params=params)
    except httpx.HTTPError as e:
        logger.error("[%s] upstream unreachable: %s", label, e)
        return error_response(500, f"{label} request failed", str(e))

    if resp.status_code >= 400:
        details = _details(resp)
        logger.error("[%s] backend error %s: %s", label, resp.status_code, details)
        return error_response(resp.status_code, f"{label} failed", details)

    try:
        return resp.json()
    except ValueError:
        logger.error("[%s] backend answered with non-JSON body", label)
        return error_response(500, f"{label} failed", "Invalid JSON from backend")


async def read_json(request: Request) -> Any:
    """Request body as JSON; None when it is missing or malformed"""
    try:
        return await request.json()
    except ValueError:
        return None


def missing_auth(request: Request) -> Optional[JSONResponse]:
    """401 response when the Authorization header is absent"""
    if not request.headers.get("authorization"):
        return JSONResponse(status_code=401, content=AUTH_REQUIRED)
    return None
