import asyncio

import httpx
import pytest

from evista_partner.config.settings import settings
from evista_partner.services.backend_client import BackendError, EvistaClient

BASE_URL = "https://backend.test"


class RotatingTokens:
    def __init__(self):
        self.issued = 0
        self.cleared = 0

    async def get_token(self):
        return f"token-{self.issued:02d}-abcdefghijklmnopqrstuvwxyz"

    def clear_token(self):
        self.cleared += 1
        self.issued += 1


class TestRequest:
    def test_unauthorized_is_retried_once_with_fresh_token(self, backend, http):
        seen = []

        def cars(request):
            seen.append(request.headers["Authorization"])
            if len(seen) == 1:
                return httpx.Response(401, json={"message": "Unauthenticated"})
            return httpx.Response(200, json={"data": [{"id": 9, "name": "Economy+"}]})

        backend.on("GET", "/api/car/list", handler=cars)
        tokens = RotatingTokens()
        client = EvistaClient(http, tokens=tokens, base_url=BASE_URL)

        assert asyncio.run(client.list_cars()) == [{"id": 9, "name": "Economy+"}]
        assert tokens.cleared == 1
        assert seen[0] != seen[1]
        assert backend.calls[0].url.params["order_type"] == "later"

    def test_second_unauthorized_gives_up(self, backend, http):
        backend.on("GET", "/api/car/list", {"message": "Unauthenticated"}, status=401)
        client = EvistaClient(http, tokens=RotatingTokens(), base_url=BASE_URL)
        with pytest.raises(BackendError) as exc:
            asyncio.run(client.list_cars())
        assert exc.value.status_code == 401
        assert len(backend.calls) == 2

    def test_passthrough_authorization_is_not_retried(self, backend, http):
        backend.on("GET", "/api/v4/hotel/classic-hotel/payouts", {"message": "Forbidden"}, status=401)
        client = EvistaClient(http, tokens=RotatingTokens(), base_url=BASE_URL, authorization="Bearer admin")
        with pytest.raises(BackendError):
            asyncio.run(client.hotel_payouts("classic-hotel"))
        assert len(backend.calls) == 1
        assert backend.calls[0].headers["Authorization"] == "Bearer admin"

    def test_network_error(self, backend, http):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend.on("GET", "/api/checkout/v3/overview", handler=unreachable)
        client = EvistaClient(http, base_url=BASE_URL)
        with pytest.raises(BackendError) as exc:
            asyncio.run(client.checkout_overview())
        assert exc.value.status_code == 503

    def test_token_provider_network_error(self, backend, http):
        class UnreachableTokens:
            async def get_token(self):
                raise httpx.ConnectError("connection refused")

            def clear_token(self):
                pass

        client = EvistaClient(http, tokens=UnreachableTokens(), base_url=BASE_URL)
        with pytest.raises(BackendError) as exc:
            asyncio.run(client.checkout_overview())
        assert exc.value.status_code == 503
        assert backend.calls == []

    def test_non_json_body(self, backend, http):
        backend.on("GET", "/api/checkout/v3/overview", handler=lambda r: httpx.Response(200, text="<html>"))
        client = EvistaClient(http, base_url=BASE_URL)
        with pytest.raises(BackendError) as exc:
            asyncio.run(client.checkout_overview())
        assert exc.value.status_code == 502

    def test_error_message_from_body(self, backend, http):
        backend.on("POST", "/api/trip/submit", {"message": "Jadwal tidak valid"}, status=422)
        client = EvistaClient(http, base_url=BASE_URL)
        with pytest.raises(BackendError) as exc:
            asyncio.run(client.submit_trip({}))
        assert exc.value.message == "Jadwal tidak valid"
        assert exc.value.details == {"message": "Jadwal tidak valid"}


class TestEndpoints:
    def test_submit_trip_checks_code(self, backend, http):
        backend.on("POST", "/api/trip/submit", {"code": 400, "message": "Pickup belum dipilih"})
        client = EvistaClient(http, base_url=BASE_URL)
        with pytest.raises(BackendError) as exc:
            asyncio.run(client.submit_trip({"order_type": "later"}))
        assert exc.value.message == "Pickup belum dipilih"

    def test_destination_body(self, backend, http):
        backend.on("POST", "/api/destination/selectlocation", {"code": 200})
        client = EvistaClient(http, base_url=BASE_URL)
        asyncio.run(client.select_destination(-6.3, 106.9, "Jimbaran", "later", note=""))
        assert backend.body(backend.calls[0]) == {
            "from": "manual", "order_type": "later", "lat": -6.3, "long": 106.9, "label": "Jimbaran", "note": "-",
        }

    def test_search_place(self, backend, http):
        backend.on("GET", "/api/location/searchplace", {"data": [{"label": "Bandara Soekarno-Hatta"}]})
        client = EvistaClient(http, tokens=RotatingTokens(), base_url=BASE_URL)
        result = asyncio.run(client.search_place("bandara"))
        assert result["data"][0]["label"] == "Bandara Soekarno-Hatta"
        assert backend.calls[0].url.params["q"] == "bandara"
        assert backend.calls[0].headers["Authorization"].startswith("Bearer token-00")

    def test_profile_defaults(self, backend, http):
        backend.on("POST", "/api/sauth/myprofile", {"code": 200})
        client = EvistaClient(http, base_url=BASE_URL)
        asyncio.run(client.update_profile("", "0812"))
        assert backend.body(backend.calls[0]) == {
            "fullname": "Guest User", "phone": "0812", "gender": "male", "profile_picture_media_id": 1,
        }

    def test_all_transactions_walks_pages(self, backend, http):
        per_page = settings.TRANSACTIONS_PER_PAGE

        def page(request):
            number = int(request.url.params["page"])
            start = (number - 1) * per_page
            size = per_page if number == 1 else 5
            rows = [{"booking_id": str(start + i + 1), "seq": start + i + 1} for i in range(size)]
            return httpx.Response(200, json={"code": 200, "data": {"transactions": rows, "total_bookings": per_page + 5}})

        backend.on("GET", "/api/v4/hotel/classic-hotel/transactions", handler=page)
        client = EvistaClient(http, base_url=BASE_URL)
        payload = asyncio.run(client.all_hotel_transactions("classic-hotel", month="2026-03"))

        assert len(payload["data"]["transactions"]) == per_page + 5
        assert payload["data"]["total_bookings"] == per_page + 5
        assert [c.url.params["page"] for c in backend.calls] == ["1", "2"]
        assert backend.calls[0].url.params["month"] == "2026-03"

    def test_all_transactions_stops_when_page_is_ignored(self, backend, http):
        rows = [{"booking_id": str(i + 1), "seq": i + 1} for i in range(settings.TRANSACTIONS_PER_PAGE)]
        backend.on("GET", "/api/v4/hotel/classic-hotel/transactions", {"code": 200, "data": {"transactions": rows}})
        client = EvistaClient(http, base_url=BASE_URL)
        payload = asyncio.run(client.all_hotel_transactions("classic-hotel"))

        assert payload["data"]["transactions"] == rows
        assert len(backend.calls) == 2

    def test_all_transactions_page_limit(self, backend, http):
        per_page = settings.TRANSACTIONS_PER_PAGE

        def endless(request):
            start = (int(request.url.params["page"]) - 1) * per_page
            rows = [{"booking_id": str(start + i + 1), "seq": start + i + 1} for i in range(per_page)]
            return httpx.Response(200, json={"code": 200, "data": {"transactions": rows}})

        backend.on("GET", "/api/v4/hotel/classic-hotel/transactions", handler=endless)
        client = EvistaClient(http, base_url=BASE_URL)
        payload = asyncio.run(client.all_hotel_transactions("classic-hotel"))

        assert len(backend.calls) == settings.TRANSACTIONS_MAX_PAGES
        assert len(payload["data"]["transactions"]) == settings.TRANSACTIONS_MAX_PAGES * per_page
