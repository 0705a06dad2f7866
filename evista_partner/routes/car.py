"""
Car proxy routes
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth, pick_params, read_json

router = APIRouter(prefix="/car", tags=["Car"])


@router.get("/list")
async def list_cars(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    params = pick_params(request, ["order_type"], defaults={"order_type": "later"})
    return await forward(http, request, "GET", "/api/car/list", label="Car List", params=params)


@router.post("/select")
async def select_car(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    """Sets the car type of the current order (needed before checkout for pricing)."""
    denied = missing_auth(request)
    if denied is not None:
        return denied
    body = await read_json(request)
    if body is None:
        return error_response(400, "Invalid JSON body")
    return await forward(http, request, "POST", "/api/car/submit", label="Car Select", json=body)
