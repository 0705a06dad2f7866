"""
Place search proxy route
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth

router = APIRouter(prefix="/location", tags=["Location"])


@router.get("/searchplace")
async def search_place(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    q = (request.query_params.get("q") or "").strip()
    if not q:
        return error_response(400, "Query parameter 'q' is required")
    denied = missing_auth(request)
    if denied is not None:
        return denied
    return await forward(
        http, request, "GET", "/api/location/searchplace", label="Search Place", params={"q": q}
    )
