import os
import sys
from datetime import date, timedelta
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from servicehub.config import Settings
from servicehub.main import create_app


def _geocoder_handler(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("postalcode") == "411001":
        return httpx.Response(200, json=[{"lat": "18.5204", "lon": "73.8567"}])
    return httpx.Response(200, json=[])


@pytest.fixture
def client(tmp_path):
    settings = Settings(database_path=str(tmp_path / "api.sqlite3"), password_hash_iterations=1000)
    app = create_app(settings, geocoder_transport=httpx.MockTransport(_geocoder_handler))
    with TestClient(app) as test_client:
        yield test_client


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _signup_user(client: TestClient, email: str = "") -> dict:
    email = email or f"user_{uuid4().hex[:8]}@example.com"
    response = client.post(
        "/auth/signup/user",
        json={"name": "Asha", "email": email, "phone": uuid4().hex[:10], "password": "s3cret"},
    )
    assert response.status_code == 200
    return response.json()


def _signup_provider(client: TestClient, service_type: str = "plumber") -> dict:
    response = client.post(
        "/auth/signup/provider",
        json={
            "name": "Ravi Pipes",
            "email": f"pro_{uuid4().hex[:8]}@example.com",
            "phone": uuid4().hex[:10],
            "service_type": service_type,
            "password": "s3cret",
        },
    )
    assert response.status_code == 200
    return response.json()


def _login(client: TestClient, email: str, role: str, password: str = "s3cret") -> dict:
    response = client.post("/auth/login", json={"email": email, "password": password, "role": role})
    assert response.status_code == 200
    return response.json()


def _ready_provider(client: TestClient, city: str = "Pune", price: float = 400) -> tuple[dict, str]:
    provider = _signup_provider(client)
    token = _login(client, provider["email"], "provider")["access_token"]
    setup = client.post(
        "/providers/me/setup",
        json={"experience": 5, "price_per_visit": price, "city": city, "pincode": "411001", "about": "Leaks fixed"},
        headers=_auth(token),
    )
    assert setup.status_code == 200
    return setup.json(), token


def _book(client: TestClient, provider_id: str, user_token: str, on=None) -> dict:
    response = client.post(
        "/bookings",
        json={
            "provider_id": provider_id,
            "date": (on or date.today()).isoformat(),
            "time": "10:00",
            "address": "12 MG Road",
            "pincode": "411001",
        },
        headers=_auth(user_token),
    )
    assert response.status_code == 200
    return response.json()


def test_health_ok(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_signup_and_login_destinations(client):
    user = _signup_user(client)
    user_login = _login(client, user["email"], "user")
    assert user_login["destination"] == "discovery"
    assert user_login["redirect_to"] == "/providers"

    provider = _signup_provider(client)
    assert provider["is_profile_complete"] is False
    assert provider["is_available"] is True
    first_login = _login(client, provider["email"], "provider")
    assert first_login["destination"] == "profile_setup"

    client.post("/providers/me/setup", json={"city": "Pune"}, headers=_auth(first_login["access_token"]))
    second_login = _login(client, provider["email"], "provider")
    assert second_login["destination"] == "dashboard"


def test_signup_never_returns_password_hash(client):
    user = _signup_user(client)
    assert "password" not in user
    assert "password_hash" not in user


def test_duplicate_signup_conflicts_within_kind_only(client):
    user = _signup_user(client, email="shared@example.com")
    again = client.post(
        "/auth/signup/user",
        json={"name": "Other", "email": "shared@example.com", "phone": "9999999999", "password": "x"},
    )
    assert again.status_code == 409

    provider = client.post(
        "/auth/signup/provider",
        json={
            "name": "Same Email Pro",
            "email": user["email"],
            "phone": "8888888888",
            "service_type": "electrician",
            "password": "x",
        },
    )
    assert provider.status_code == 200


def test_login_failures_are_distinguishable(client):
    user = _signup_user(client)

    invalid_role = client.post("/auth/login", json={"email": user["email"], "password": "s3cret", "role": "admin"})
    assert invalid_role.status_code == 400

    unknown = client.post("/auth/login", json={"email": "nobody@example.com", "password": "x", "role": "user"})
    assert unknown.status_code == 401
    assert unknown.json()["detail"] == "Email not registered"

    wrong = client.post("/auth/login", json={"email": user["email"], "password": "nope", "role": "user"})
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Wrong password"


def test_protected_routes_redirect_to_login(client):
    client.cookies.clear()
    response = client.get("/providers/me/dashboard")
    assert response.status_code == 401
    assert response.headers["location"] == "/auth/login"
    assert response.json()["detail"]["redirect_to"] == "/auth/login"

    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]
    as_user = client.get("/providers/me", headers=_auth(user_token))
    assert as_user.status_code == 401


def test_session_cookie_authenticates_and_logout_clears_it(client):
    user = _signup_user(client)
    token = _login(client, user["email"], "user")["access_token"]

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json() == {"role": "user", "account_id": user["id"]}

    logout = client.post("/auth/logout")
    assert logout.status_code == 200
    assert client.get("/auth/me", headers=_auth(token)).status_code == 401

    # Logging out again is harmless.
    assert client.post("/auth/logout").status_code == 200


def test_booking_accept_then_reject_is_invalid_transition(client):
    provider, provider_token = _ready_provider(client)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]

    booking = _book(client, provider["id"], user_token)
    assert booking["status"] == "Pending"
    assert booking["service_type"] == "plumber"
    assert booking["city"] == "Pune"
    assert booking["price"] == 400

    accepted = client.post(f"/bookings/{booking['id']}/accept", headers=_auth(provider_token))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "Accepted"

    rejected = client.post(f"/bookings/{booking['id']}/reject", headers=_auth(provider_token))
    assert rejected.status_code == 409

    details = client.get(f"/bookings/{booking['id']}", headers=_auth(user_token))
    assert details.status_code == 200
    assert details.json()["booking"]["status"] == "Accepted"


def test_other_provider_cannot_act_on_booking(client):
    provider, _ = _ready_provider(client)
    _, intruder_token = _ready_provider(client)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]
    booking = _book(client, provider["id"], user_token)

    forbidden = client.post(f"/bookings/{booking['id']}/reject", headers=_auth(intruder_token))
    assert forbidden.status_code == 403

    peek = client.get(f"/bookings/{booking['id']}", headers=_auth(intruder_token))
    assert peek.status_code == 403

    mine = client.get(f"/bookings/{booking['id']}", headers=_auth(user_token))
    assert mine.json()["booking"]["status"] == "Pending"


def test_booking_unknown_ids_return_404(client):
    _, provider_token = _ready_provider(client)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]

    missing_provider = client.post(
        "/bookings",
        json={"provider_id": "prv_missing", "date": "2026-10-20", "time": "09:00"},
        headers=_auth(user_token),
    )
    assert missing_provider.status_code == 404
    assert missing_provider.json()["detail"] == "Provider not found"

    missing_booking = client.post("/bookings/bkg_missing/accept", headers=_auth(provider_token))
    assert missing_booking.status_code == 404
    assert missing_booking.json()["detail"] == "Booking not found"


def test_providers_cannot_create_bookings(client):
    provider, provider_token = _ready_provider(client)
    response = client.post(
        "/bookings",
        json={"provider_id": provider["id"], "date": "2026-10-20", "time": "09:00"},
        headers=_auth(provider_token),
    )
    assert response.status_code == 401


def test_dashboard_requires_completed_profile(client):
    provider = _signup_provider(client)
    token = _login(client, provider["email"], "provider")["access_token"]
    response = client.get("/providers/me/dashboard", headers=_auth(token))
    assert response.status_code == 409
    assert response.json()["detail"]["redirect_to"] == "/providers/me/setup"


def test_dashboard_reports_earnings_and_queues(client):
    provider, provider_token = _ready_provider(client, price=250)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]

    accepted = _book(client, provider["id"], user_token)
    client.post(f"/bookings/{accepted['id']}/accept", headers=_auth(provider_token))
    pending = _book(client, provider["id"], user_token, on=date.today() + timedelta(days=2))
    rejected = _book(client, provider["id"], user_token)
    client.post(f"/bookings/{rejected['id']}/reject", headers=_auth(provider_token))

    response = client.get("/providers/me/dashboard", headers=_auth(provider_token))
    assert response.status_code == 200
    payload = response.json()
    assert payload["today_earnings"] == 250
    assert payload["week_earnings"] == 250
    assert payload["month_earnings"] == 250
    assert payload["jobs_today_count"] == 1
    assert [item["booking"]["id"] for item in payload["pending_bookings"]] == [pending["id"]]
    assert payload["pending_bookings"][0]["user"]["name"] == "Asha"
    assert [item["booking"]["id"] for item in payload["today_jobs"]] == [accepted["id"]]


def test_booking_lists_are_newest_first(client):
    provider, provider_token = _ready_provider(client)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]
    first = _book(client, provider["id"], user_token)
    second = _book(client, provider["id"], user_token)
    client.post(f"/bookings/{first['id']}/accept", headers=_auth(provider_token))

    mine = client.get("/users/me/bookings", headers=_auth(user_token))
    assert mine.status_code == 200
    assert [item["booking"]["id"] for item in mine.json()] == [second["id"], first["id"]]
    assert mine.json()[0]["provider"]["service_type"] == "plumber"

    history = client.get("/providers/me/bookings", headers=_auth(provider_token))
    assert [item["booking"]["id"] for item in history.json()] == [second["id"], first["id"]]

    only_pending = client.get("/providers/me/bookings", params={"status": "Pending"}, headers=_auth(provider_token))
    assert [item["booking"]["id"] for item in only_pending.json()] == [second["id"]]


def test_complete_booking_counts_job(client):
    provider, provider_token = _ready_provider(client)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]
    booking = _book(client, provider["id"], user_token)

    too_early = client.post(f"/bookings/{booking['id']}/complete", headers=_auth(provider_token))
    assert too_early.status_code == 409

    client.post(f"/bookings/{booking['id']}/accept", headers=_auth(provider_token))
    done = client.post(f"/bookings/{booking['id']}/complete", headers=_auth(provider_token))
    assert done.status_code == 200
    assert done.json()["status"] == "Completed"

    profile = client.get("/providers/me", headers=_auth(provider_token))
    assert profile.json()["total_jobs"] == 1


def test_directory_search_filters_and_availability(client):
    match, match_token = _ready_provider(client, city="Pune", price=450)
    _ready_provider(client, city="Mumbai", price=300)
    _ready_provider(client, city="Pune Camp", price=900)
    incomplete = _signup_provider(client)

    response = client.get("/providers", params={"service_type": "PLUMBER", "city": "pune", "max_price": 500})
    assert response.status_code == 200
    ids = [item["id"] for item in response.json()]
    assert ids == [match["id"]]
    assert incomplete["id"] not in ids

    toggled = client.post("/providers/me/availability/toggle", headers=_auth(match_token))
    assert toggled.json()["is_available"] is False
    hidden = client.get("/providers", params={"service_type": "plumber", "city": "pune", "max_price": 500})
    assert hidden.json() == []

    restored = client.post("/providers/me/availability/toggle", headers=_auth(match_token))
    assert restored.json()["is_available"] is True


def test_profile_edit_keeps_booking_snapshot(client):
    provider, provider_token = _ready_provider(client, city="Pune", price=400)
    user = _signup_user(client)
    user_token = _login(client, user["email"], "user")["access_token"]
    booking = _book(client, provider["id"], user_token)

    edited = client.post(
        "/providers/me/edit",
        json={"city": "Nashik", "price_per_visit": 650},
        headers=_auth(provider_token),
    )
    assert edited.status_code == 200
    assert edited.json()["city"] == "Nashik"

    details = client.get(f"/bookings/{booking['id']}", headers=_auth(user_token)).json()
    assert details["booking"]["city"] == "Pune"
    assert details["booking"]["price"] == 400
    assert details["provider"]["city"] == "Nashik"
    assert details["user"]["name"] == "Asha"


def test_public_provider_profile(client):
    provider, _ = _ready_provider(client)
    found = client.get(f"/providers/{provider['id']}")
    assert found.status_code == 200
    assert found.json()["name"] == "Ravi Pipes"
    assert client.get("/providers/prv_missing").status_code == 404


def test_public_profile_hides_unfinished_providers(client):
    provider = _signup_provider(client)
    hidden = client.get(f"/providers/{provider['id']}")
    assert hidden.status_code == 404

    token = _login(client, provider["email"], "provider")["access_token"]
    own = client.get("/providers/me", headers=_auth(token))
    assert own.status_code == 200
    assert own.json()["is_profile_complete"] is False


def test_geocode_postal_code(client):
    resolved = client.get("/geo/postal-codes/411001")
    assert resolved.status_code == 200
    assert resolved.json() == {"lat": 18.5204, "lng": 73.8567}

    invalid = client.get("/geo/postal-codes/000000")
    assert invalid.status_code == 400


def test_store_unavailable_returns_generic_503(client, caplog):
    client.app.state.services.db.close()
    with caplog.at_level("ERROR", logger="servicehub.http_errors"):
        response = client.get("/providers")
    assert response.status_code == 503
    assert response.json()["detail"] == "Service temporarily unavailable"
    assert any("Store unavailable" in record.getMessage() for record in caplog.records)
