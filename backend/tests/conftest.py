"""
Shared fixtures: an in-memory hotel API served through httpx.MockTransport.
"""

import json
from typing import Callable, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from frontdesk.core.api_client import HotelApiClient
from frontdesk.core.cache import CacheRegistry, QueryCache
from frontdesk.core.session import SessionContext

BASE_URL = "http://hotel.test/api"

GUEST_TOKEN = "guest-token"
STAFF_TOKEN = "staff-token"

Route = Union[tuple[int, object], Callable[[httpx.Request], httpx.Response]]


def make_user(**overrides) -> dict:
    user = {
        "id": "u-guest",
        "email": "guest@example.com",
        "role": "guest",
        "first_name": "Ada",
        "last_name": "Guest",
        "is_verified": True,
        "is_active": True,
    }
    user.update(overrides)
    return user


def make_room(**overrides) -> dict:
    room = {
        "id": "r-101",
        "room_number": "101",
        "type": "double",
        "capacity": 2,
        "price_per_night": 100,
        "status": "available",
        "floor": 1,
        "amenities": ["wifi", "tv"],
        "images": [],
    }
    room.update(overrides)
    return room


def make_booking(**overrides) -> dict:
    booking = {
        "id": "b-1",
        "room_id": "r-101",
        "guest_id": "u-guest",
        "check_in_date": "2024-01-01T14:00:00Z",
        "check_out_date": "2024-01-04T11:00:00Z",
        "guests": 2,
        "total_amount": 300,
        "paid_amount": 0,
        "status": "pending",
    }
    booking.update(overrides)
    return booking


class FakeHotelApi:
    """Routes keyed by (method, path) below the API prefix; records every request."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, body: object = None) -> None:
        self.routes[(method, path)] = (status_code, body)

    def handle(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and self._path(r) == path]

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len("/api"):] if path.startswith("/api") else path

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, self._path(request)))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if callable(route):
            return route(request)
        status_code, body = route
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content or b"{}")


def users_by_token(request: httpx.Request) -> httpx.Response:
    """GET /users/profile: resolve the bearer token to a user."""
    auth = request.headers.get("Authorization", "")
    if auth == f"Bearer {GUEST_TOKEN}":
        return httpx.Response(200, json={"user": make_user()})
    if auth == f"Bearer {STAFF_TOKEN}":
        return httpx.Response(
            200,
            json={"user": make_user(id="u-staff", email="staff@example.com", role="staff")},
        )
    return httpx.Response(401, json={"message": "Invalid token"})


@pytest.fixture
def fake_api() -> FakeHotelApi:
    api = FakeHotelApi()
    api.handle("GET", "/users/profile", users_by_token)
    return api


@pytest.fixture
async def http_client(fake_api):
    async with httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_api)) as client:
        yield client


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(token=GUEST_TOKEN, refresh_token="guest-refresh")


@pytest.fixture
def api_client(http_client, session) -> HotelApiClient:
    return HotelApiClient(http_client, session)


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(dedupe_seconds=2.0)


@pytest.fixture
def client(fake_api):
    """TestClient whose hotel API calls go to ``fake_api``."""
    from frontdesk.main import app

    with TestClient(app) as test_client:
        original = app.state.http
        app.state.http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_api))
        app.state.cache_registry = CacheRegistry(dedupe_seconds=2.0)
        yield test_client
        app.state.http = original
