import httpx
import pytest


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy"}


class TestAuthRequired:
    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/car/list"),
        ("POST", "/api/car/select"),
        ("POST", "/api/destination/selectlocation"),
        ("POST", "/api/pickup/selectlocation"),
        ("GET", "/api/location/searchplace?q=bandara"),
        ("POST", "/api/trip/submit"),
        ("POST", "/api/trip/roundtrip"),
        ("GET", "/api/checkout/v3/overview"),
        ("POST", "/api/checkout/v3/pay"),
        ("GET", "/api/checkout/v3/payment/detail/777"),
        ("POST", "/api/profile/update"),
    ])
    def test_missing_header_is_rejected_locally(self, client, backend, method, path):
        resp = client.request(method, path, json={})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Authorization header required"}
        assert backend.calls == []


class TestForwarding:
    def test_car_list_passes_header_and_default(self, client, backend, auth):
        backend.on("GET", "/api/car/list", {"code": 200, "data": [{"id": 9}]})
        resp = client.get("/api/car/list", headers=auth)
        assert resp.json() == {"code": 200, "data": [{"id": 9}]}
        call = backend.calls[0]
        assert call.headers["Authorization"] == auth["Authorization"]
        assert call.url.params["order_type"] == "later"

    def test_car_select_maps_to_submit(self, client, backend, auth):
        backend.on("POST", "/api/car/submit", {"code": 200})
        client.post("/api/car/select", json={"type_id": 2, "order_type": "later"}, headers=auth)
        assert backend.body(backend.calls[0]) == {"type_id": 2, "order_type": "later"}

    def test_round_trip_path(self, client, backend, auth):
        backend.on("POST", "/api/trip/roundtrip/set", {"code": 200})
        assert client.post("/api/trip/roundtrip", json={"is_round_trip": 1}, headers=auth).status_code == 200

    def test_checkout_paths(self, client, backend, auth):
        backend.on("POST", "/apiv3/checkout/pay", {"code": 200, "data": {"va_number": "123"}})
        backend.on("GET", "/apiv3/checkout/paymentdetail/777", {"data": {"status": "pending"}})
        assert client.post("/api/checkout/v3/pay", json={"order_id": 777}, headers=auth).json()["data"]["va_number"] == "123"
        assert client.get("/api/checkout/v3/payment/detail/777", headers=auth).json()["data"]["status"] == "pending"

    def test_destination_requires_fields(self, client, backend, auth):
        resp = client.post("/api/destination/selectlocation", json={"lat": -6.3}, headers=auth)
        assert resp.status_code == 400
        assert backend.calls == []

    def test_destination_fills_defaults(self, client, backend, auth):
        backend.on("POST", "/api/destination/selectlocation", {"code": 200})
        client.post("/api/destination/selectlocation", json={"lat": -6.3, "long": 106.9, "label": "Jimbaran"}, headers=auth)
        assert backend.body(backend.calls[0]) == {
            "from": "manual", "order_type": "direct", "lat": -6.3, "long": 106.9, "label": "Jimbaran", "note": "-",
        }

    def test_search_requires_query(self, client, backend, auth):
        assert client.get("/api/location/searchplace", headers=auth).status_code == 400
        backend.on("GET", "/api/location/searchplace", {"data": []})
        assert client.get("/api/location/searchplace?q=halim", headers=auth).status_code == 200
        assert backend.calls[0].url.params["q"] == "halim"

    def test_invalid_json_body(self, client, backend, auth):
        resp = client.post("/api/trip/submit", content=b"{oops", headers={**auth, "Content-Type": "application/json"})
        assert resp.status_code == 400
        assert backend.calls == []

    def test_profile_defaults(self, client, backend, auth):
        backend.on("POST", "/api/sauth/myprofile", {"code": 200})
        client.post("/api/profile/update", json={"phone": "0812"}, headers=auth)
        assert backend.body(backend.calls[0]) == {
            "fullname": "Guest User", "phone": "0812", "gender": "male", "profile_picture_media_id": 1,
        }


class TestErrorNormalization:
    def test_upstream_status_is_kept(self, client, backend, auth):
        backend.on("POST", "/api/trip/submit", {"message": "Jadwal tidak valid"}, status=422)
        resp = client.post("/api/trip/submit", json={}, headers=auth)
        assert resp.status_code == 422
        assert resp.json() == {"error": "Trip Submit failed", "details": {"message": "Jadwal tidak valid"}}

    def test_unreachable_backend_is_500(self, client, backend, auth):
        def down(request):
            raise httpx.ConnectError("refused", request=request)

        backend.on("GET", "/api/checkout/v3/overview", handler=down)
        resp = client.get("/api/checkout/v3/overview", headers=auth)
        assert resp.status_code == 500
        assert "error" in resp.json()

    def test_non_json_upstream_is_500(self, client, backend, auth):
        backend.on("GET", "/api/checkout/v3/overview", handler=lambda r: httpx.Response(200, text="<html>"))
        resp = client.get("/api/checkout/v3/overview", headers=auth)
        assert resp.status_code == 500
        assert resp.json()["details"] == "Invalid JSON from backend"


class TestAuthRoutes:
    def test_guest_returns_token_and_user(self, client, backend):
        backend.on("POST", "/api/auth/sign/guest", {"data": {"token": "guest-jwt-abcdefghijklmnopqrstu", "user": {"id": 5}}})
        resp = client.post("/api/auth/guest")
        assert resp.json() == {"token": "guest-jwt-abcdefghijklmnopqrstu", "user": {"id": 5}}
        assert "authorization" not in backend.calls[0].headers

    def test_guest_without_token_is_500(self, client, backend):
        backend.on("POST", "/api/auth/sign/guest", {"data": {}})
        assert client.post("/api/auth/guest").status_code == 500

    def test_google_sign_in_passthrough(self, client, backend):
        backend.on("POST", "/api/auth/sign/google", {"token": {"jwt_token": "x"}})
        body = {"email": "user.abc@evista.temp", "google_id": 123}
        assert client.post("/api/auth/sign/google", json=body).status_code == 200
        assert backend.body(backend.calls[0]) == body


class TestHotelProxy:
    def test_hotel_info_without_auth(self, client, backend):
        backend.on("GET", "/api/hotel/classic-hotel", {"data": {"name": "Classic Hotel"}})
        assert client.get("/api/hotel/classic-hotel").json()["data"]["name"] == "Classic Hotel"

    def test_transactions_allow_list(self, client, backend, auth):
        backend.on("GET", "/api/v4/hotel/classic-hotel/transactions", {"data": {"transactions": []}})
        client.get("/api/hotel/classic-hotel/transactions?month=2026-03&page=2&debug=1&token=abc", headers=auth)
        params = dict(backend.calls[0].url.params)
        assert params == {"month": "2026-03", "page": "2"}

    def test_payouts_path(self, client, backend, auth):
        backend.on("GET", "/api/v4/hotel/classic-hotel/payouts", {"data": {"payouts": []}})
        assert client.get("/api/hotel/classic-hotel/payouts", headers=auth).status_code == 200
