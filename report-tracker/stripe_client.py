# report-tracker/stripe_client.py
import logging
from datetime import datetime
from typing import Optional, List, Dict

import httpx

import config

logger = logging.getLogger(__name__)

API_HOST = "https://api.stripe.com"
V1_BASE = f"{API_HOST}/v1"


class StripeError(Exception):
    """The Stripe API could not be queried."""


def _headers(secret_key: str) -> dict:
    return {"Authorization": f"Bearer {secret_key}"}

async def list_charges(
    client: httpx.AsyncClient,
    secret_key: str,
    created_gte: Optional[datetime] = None,
    created_lt: Optional[datetime] = None,
) -> List[Dict]:
    """All charges created in [created_gte, created_lt), following `has_more` pagination."""
    params = {"limit": 100}
    if created_gte is not None:
        params["created[gte]"] = int(created_gte.timestamp())
    if created_lt is not None:
        params["created[lt]"] = int(created_lt.timestamp())

    charges: List[Dict] = []
    while True:
        try:
            resp = await client.get(f"{V1_BASE}/charges", headers=_headers(secret_key), params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StripeError(
                f"Listing charges failed | Status: {e.response.status_code} | Response: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise StripeError(f"Listing charges failed: {e}") from e

        body = resp.json() or {}
        data = body.get("data") or []
        charges.extend(data)
        if not body.get("has_more") or not data:
            break
        params["starting_after"] = data[-1]["id"]
    return charges

def _succeeded(charge: Dict) -> bool:
    return charge.get("status") == "succeeded"

async def count_first_time_payments(secret_key: str, window_start: datetime, window_end: datetime) -> int:
    """
    Counts successful charges in [window_start, window_end) whose receipt email has
    no successful charge created before window_start. Charges without a receipt
    email are ignored.
    """
    async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
        window_charges = [c for c in await list_charges(client, secret_key, window_start, window_end) if _succeeded(c)]
        if not any(c.get("receipt_email") for c in window_charges):
            return 0

        # TODO: filter history by customer once charges are linked to Stripe customers; this scans every earlier charge.
        history = await list_charges(client, secret_key, created_lt=window_start)

    previous_emails = {c.get("receipt_email") for c in history if _succeeded(c) and c.get("receipt_email")}

    first_time = 0
    for charge in window_charges:
        email = charge.get("receipt_email")
        if email and email not in previous_emails:
            first_time += 1
    logger.info(f"{first_time} of {len(window_charges)} successful charges are first-time payments.")
    return first_time
