"""Relay quote requests on marketplace-sourced listings to the charter marketplace.

Single attempt, no retry. A failed forward leaves the booking untouched; staff
can still act on it locally.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from flask import current_app

from models import db
from models.airport import Airport
from models.booking import Booking
from services.errors import ExternalServiceError
from services.notifications import is_marketplace_listing
from utils.audit import log_activity
from utils.clock import utcnow

logger = logging.getLogger(__name__)


class MarketplaceClient:
    DEFAULT_TIMEOUT_S = 15.0

    def __init__(self, base_url: str, api_key: Optional[str], owner_id: Optional[str],
                 timeout_s: float = None, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.owner_id = owner_id
        self.timeout_s = timeout_s or self.DEFAULT_TIMEOUT_S
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_config(cls, config) -> "MarketplaceClient":
        return cls(
            config.get("MARKETPLACE_BASE_URL"),
            config.get("MARKETPLACE_API_KEY"),
            config.get("MARKETPLACE_OWNER_ID"),
            timeout_s=config.get("MARKETPLACE_TIMEOUT_SECONDS"),
        )

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.api_key and self.owner_id)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout_s,
                headers={"accept": "*/*", "X-Api-Key": self.api_key or ""},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def send_request(self, payload: Dict[str, Any]) -> str:
        """POST /Sendrequest and return the marketplace request id."""
        url = f"{self.base_url}/Sendrequest"
        try:
            resp = self._get_client().post(url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(f"Marketplace returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalServiceError(f"Marketplace request failed: {e}") from e

        request_id = ((data or {}).get("data") or {}).get("requestId")
        if not request_id:
            raise ExternalServiceError("Marketplace response carried no data.requestId")
        return str(request_id)


def get_marketplace() -> MarketplaceClient:
    return current_app.extensions["marketplace"]


def _place(airport: Airport) -> Dict[str, Any]:
    return {
        "lat": airport.latitude or 0,
        "long": airport.longitude or 0,
        "name": airport.display_name,
        "timeZone": airport.time_zone or "UTC",
    }


def build_marketplace_request(booking: Booking, owner_id: str) -> Dict[str, Any]:
    listing = booking.listing
    haves = []
    if listing.external_id and listing.external_id.isdigit():
        haves.append(int(listing.external_id))

    return {
        "owner": {"id": owner_id},
        "choices": [],
        "haves": haves,
        "journey": [
            {
                "depTime": listing.departure_at.isoformat(timespec="seconds") + "Z",
                "pax": booking.seats_requested,
                "from": _place(listing.departure_airport),
                "to": _place(listing.arrival_airport),
            }
        ],
        "customer": {
            "name": booking.client_name,
            "email": booking.client_email,
            "phone": booking.client_phone,
            "message": f"Empty leg quote request - Ref: {booking.reference_number}",
        },
    }


def forward_booking(booking: Booking) -> bool:
    """Forward ``booking`` if its listing came from the marketplace. Returns True when accepted."""
    if not is_marketplace_listing(booking.listing):
        return False

    marketplace = get_marketplace()
    if not marketplace.enabled:
        logger.info("Marketplace not configured, booking %s not forwarded", booking.reference_number)
        return False

    payload = build_marketplace_request(booking, marketplace.owner_id)
    try:
        request_id = marketplace.send_request(payload)
    except ExternalServiceError as exc:
        logger.error("Forwarding booking %s failed: %s", booking.reference_number, exc)
        log_activity(
            "EMPTY_LEG_QUOTE_FORWARD_FAIL",
            target_type="Booking",
            target_id=booking.id,
            description=f"Forwarding {booking.reference_number} to the marketplace failed",
            client_phone=booking.client_phone,
            metadata={"payload": payload, "error": str(exc)},
        )
        return False

    booking.external_request_id = request_id
    booking.forwarded_to_external = True
    booking.forwarded_at = utcnow()
    db.session.commit()
    logger.info("Booking %s forwarded, marketplace request %s", booking.reference_number, request_id)

    log_activity(
        "EMPTY_LEG_QUOTE_FORWARD",
        target_type="Booking",
        target_id=booking.id,
        description=f"Forwarded {booking.reference_number} to the marketplace",
        client_phone=booking.client_phone,
        metadata={"payload": payload, "requestId": request_id},
    )
    return True
