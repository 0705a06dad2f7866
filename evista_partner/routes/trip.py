"""
Trip proxy routes
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth, read_json

router = APIRouter(prefix="/trip", tags=["Trip"])


async def _forward_body(request: Request, http: httpx.AsyncClient, path: str, label: str):
    denied = missing_auth(request)
    if denied is not None:
        return denied
    body = await read_json(request)
    if body is None:
        return error_response(400, "Invalid JSON body")
    return await forward(http, request, "POST", path, label=label, json=body)


@router.post("/submit")
async def submit_trip(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await _forward_body(request, http, "/api/trip/submit", "Trip Submit")


@router.post("/roundtrip")
async def set_round_trip(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await _forward_body(request, http, "/api/trip/roundtrip/set", "Round Trip")
