"""
Auth proxy routes – guest and anonymous-user sign-in
"""
import logging

import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, read_json
from evista_partner.services.session import extract_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/guest")
async def guest_sign_in(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    """Guest session; answers only the JWT string and the user object."""
    result = await forward(http, request, "POST", "/api/auth/sign/guest", label="Guest Auth", require_auth=False)
    if not isinstance(result, dict):
        return result

    token = extract_token(result)
    if not token:
        logger.error("Guest sign-in answered without a token: %s", result)
        return error_response(500, "Failed to create guest session", "No token in backend response")
    data = result.get("data") if isinstance(result.get("data"), dict) else {}
    return {"token": token, "user": data.get("user") or result.get("user")}


@router.post("/sign/google")
async def google_sign_in(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    """Anonymous account creation; the body is passed through untouched."""
    body = await read_json(request)
    if body is None:
        return error_response(400, "Invalid JSON body")
    return await forward(
        http, request, "POST", "/api/auth/sign/google", label="Google Sign-in", require_auth=False, json=body
    )
