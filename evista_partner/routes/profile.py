"""
Profile proxy route
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth, read_json

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.post("/update")
async def update_profile(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    denied = missing_auth(request)
    if denied is not None:
        return denied
    body = await read_json(request)
    if not isinstance(body, dict):
        return error_response(400, "Invalid JSON body")
    payload = {
        "fullname": body.get("fullname") or "Guest User",
        "phone": body.get("phone") or "",
        "gender": body.get("gender") or "male",
        "profile_picture_media_id": body.get("profile_picture_media_id") or 1,
    }
    return await forward(http, request, "POST", "/api/sauth/myprofile", label="Profile Update", json=payload)
