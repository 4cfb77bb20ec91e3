# report-tracker/calendly_client.py
import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Optional, List, Dict

import httpx

import config
from utils import day_bounds, extract_phone

logger = logging.getLogger(__name__)

API_HOST = "https://api.calendly.com"


def _headers(token: str) -> dict:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }

def _handle_async_request_exception(e: httpx.HTTPError, context: str):
    error_message = f"Calendly error during '{context}': {e}"
    if isinstance(e, httpx.HTTPStatusError):
        error_message += f" | Status: {e.response.status_code} | Response: {e.response.text}"
    logger.warning(error_message)
    return None

def _to_calendly_time(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


async def get_current_user_uri(client: httpx.AsyncClient, token: str) -> Optional[str]:
    try:
        resp = await client.get(f"{API_HOST}/users/me", headers=_headers(token))
        resp.raise_for_status()
        return (resp.json().get("resource") or {}).get("uri")
    except httpx.HTTPError as e:
        return _handle_async_request_exception(e, "get current user")

async def get_scheduled_events(
    client: httpx.AsyncClient,
    token: str,
    user_uri: str,
    target_date: date,
) -> Optional[List[Dict]]:
    """Active events starting on `target_date` (business time zone). None when the API call fails."""
    start, end = day_bounds(target_date)
    params = {
        "user": user_uri,
        "min_start_time": _to_calendly_time(start),
        "max_start_time": _to_calendly_time(end),
        "status": "active",
        "count": 100,
    }

    events: List[Dict] = []
    try:
        while True:
            resp = await client.get(f"{API_HOST}/scheduled_events", headers=_headers(token), params=params)
            resp.raise_for_status()
            body = resp.json() or {}
            events.extend(body.get("collection") or [])
            next_token = (body.get("pagination") or {}).get("next_page_token")
            if not next_token:
                break
            params["page_token"] = next_token
    except httpx.HTTPError as e:
        return _handle_async_request_exception(e, f"list events for {target_date}")
    return events

async def get_event_invitees(client: httpx.AsyncClient, token: str, event: Dict) -> List[Dict]:
    """Invitees of one event as {name, email, phone, start_time}. Empty on failure."""
    event_uuid = (event.get("uri") or "").rstrip("/").split("/")[-1]
    if not event_uuid:
        return []

    try:
        resp = await client.get(f"{API_HOST}/scheduled_events/{event_uuid}/invitees", headers=_headers(token))
        resp.raise_for_status()
        invitees = resp.json().get("collection") or []
    except httpx.HTTPError as e:
        _handle_async_request_exception(e, f"list invitees for event {event_uuid}")
        return []

    phone = extract_phone((event.get("location") or {}).get("location"))
    return [
        {
            "name": (invitee.get("name") or "").strip(),
            "email": invitee.get("email") or None,
            "phone": phone,
            "start_time": event.get("start_time"),
        }
        for invitee in invitees
    ]

async def get_invitees_for_date(token: str, target_date: date, user_uri: str = None) -> Optional[List[Dict]]:
    """
    Every invitee of every active event on `target_date`.

    Per-event invitee lookups run concurrently. Returns None when the events
    themselves could not be listed.
    """
    async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
        user_uri = user_uri or config.CALENDLY_USER_URI or await get_current_user_uri(client, token)
        if not user_uri:
            logger.warning("Could not resolve the Calendly user URI. Skipping.")
            return None

        events = await get_scheduled_events(client, token, user_uri, target_date)
        if events is None:
            return None
        logger.info(f"Found {len(events)} Calendly events for {target_date}.")

        results = await asyncio.gather(*(get_event_invitees(client, token, ev) for ev in events))

    all_invitees: List[Dict] = []
    for event_invitees in results:
        all_invitees.extend(event_invitees)
    return all_invitees
