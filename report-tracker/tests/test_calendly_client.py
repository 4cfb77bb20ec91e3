from __future__ import annotations

import asyncio
from datetime import date

import httpx

import calendly_client

DAY = date(2025, 6, 26)
USER_URI = "https://api.calendly.com/users/USER1"


def _events_and_invitees_handler(requests_seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        path = request.url.path
        if path == "/users/me":
            return httpx.Response(200, json={"resource": {"uri": USER_URI}})
        if path == "/scheduled_events":
            if request.url.params.get("page_token") == "next":
                return httpx.Response(200, json={
                    "collection": [{"uri": "https://api.calendly.com/scheduled_events/EV2", "location": {"location": "Zoom"}}],
                    "pagination": {"next_page_token": None},
                })
            return httpx.Response(200, json={
                "collection": [{
                    "uri": "https://api.calendly.com/scheduled_events/EV1",
                    "start_time": "2025-06-26T14:00:00.000000Z",
                    "location": {"location": "+1 714-555-0199"},
                }],
                "pagination": {"next_page_token": "next"},
            })
        if path == "/scheduled_events/EV1/invitees":
            return httpx.Response(200, json={"collection": [
                {"name": " Duc Nguyen ", "email": "duc@example.com"},
                {"name": "Danny", "email": None},
            ]})
        if path == "/scheduled_events/EV2/invitees":
            return httpx.Response(500, text="boom")
        return httpx.Response(404)

    return handler


def _patch_client(monkeypatch, handler) -> None:
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(calendly_client.httpx, "AsyncClient", factory)


def test_get_invitees_for_date_follows_pages_and_skips_failed_events(monkeypatch) -> None:
    seen: list[httpx.Request] = []
    _patch_client(monkeypatch, _events_and_invitees_handler(seen))
    monkeypatch.setattr(calendly_client.config, "CALENDLY_USER_URI", None)

    invitees = asyncio.run(calendly_client.get_invitees_for_date("tok", DAY))

    assert invitees == [
        {"name": "Duc Nguyen", "email": "duc@example.com", "phone": "+1 714-555-0199", "start_time": "2025-06-26T14:00:00.000000Z"},
        {"name": "Danny", "email": None, "phone": "+1 714-555-0199", "start_time": "2025-06-26T14:00:00.000000Z"},
    ]
    assert all(r.headers["Authorization"] == "Bearer tok" for r in seen)

    first_events_call = next(r for r in seen if r.url.path == "/scheduled_events")
    assert first_events_call.url.params["user"] == USER_URI
    assert first_events_call.url.params["status"] == "active"
    # Midnight in New York is 04:00 UTC during daylight saving time.
    assert first_events_call.url.params["min_start_time"] == "2025-06-26T04:00:00.000000Z"
    assert first_events_call.url.params["max_start_time"] == "2025-06-27T04:00:00.000000Z"


def test_get_invitees_for_date_returns_none_when_events_fail(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Unauthenticated"})

    _patch_client(monkeypatch, handler)

    assert asyncio.run(calendly_client.get_invitees_for_date("bad", DAY, user_uri=USER_URI)) is None


def test_get_invitees_for_date_without_user_uri(monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    _patch_client(monkeypatch, handler)
    monkeypatch.setattr(calendly_client.config, "CALENDLY_USER_URI", None)

    assert asyncio.run(calendly_client.get_invitees_for_date("tok", DAY)) is None
