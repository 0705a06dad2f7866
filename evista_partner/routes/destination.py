"""
Destination proxy route
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth, read_json

router = APIRouter(prefix="/destination", tags=["Location"])


@router.post("/selectlocation")
async def select_destination(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    denied = missing_auth(request)
    if denied is not None:
        return denied

    body = await read_json(request)
    if not isinstance(body, dict):
        return error_response(400, "Invalid JSON body")
    if not body.get("lat") or not body.get("long") or not body.get("label"):
        return error_response(400, "Missing required fields: lat, long, label")

    payload = {
        "from": "manual",
        "order_type": body.get("order_type") or "direct",
        "lat": body["lat"],
        "long": body["long"],
        "label": body["label"],
        "note": body.get("note") or "-",
    }
    return await forward(
        http, request, "POST", "/api/destination/selectlocation", label="Select Destination", json=payload
    )
