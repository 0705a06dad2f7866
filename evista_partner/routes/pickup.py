"""
Pickup proxy route
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth, read_json

router = APIRouter(prefix="/pickup", tags=["Location"])


@router.post("/selectlocation")
async def select_pickup(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    denied = missing_auth(request)
    if denied is not None:
        return denied
    body = await read_json(request)
    if body is None:
        return error_response(400, "Invalid JSON body")
    return await forward(http, request, "POST", "/api/pickup/selectpickup", label="Select Pickup", json=body)
