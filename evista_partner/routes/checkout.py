"""
Checkout proxy routes – overview, payment creation and payment status
"""
import httpx
from fastapi import APIRouter, Depends, Request

from evista_partner.config.http_client import get_http_client
from evista_partner.services.proxy import error_response, forward, missing_auth, read_json

router = APIRouter(prefix="/checkout/v3", tags=["Checkout"])


@router.get("/overview")
async def checkout_overview(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await forward(http, request, "GET", "/api/checkout/v3/overview", label="Checkout Overview")


@router.post("/pay")
async def checkout_pay(request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    denied = missing_auth(request)
    if denied is not None:
        return denied
    body = await read_json(request)
    if body is None:
        return error_response(400, "Invalid JSON body")
    return await forward(http, request, "POST", "/apiv3/checkout/pay", label="Checkout Pay", json=body)


@router.get("/payment/detail/{order_id}")
async def payment_detail(order_id: str, request: Request, http: httpx.AsyncClient = Depends(get_http_client)):
    return await forward(
        http, request, "GET", f"/apiv3/checkout/paymentdetail/{order_id}", label="Payment Detail"
    )
