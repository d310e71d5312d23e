"""WhatsApp fan-out for booking transitions.

Each recipient is dispatched on its own: a failed send is logged and the loop
moves on. Nothing here raises into the transition that triggered it.
"""
import logging
from typing import Optional

from flask import current_app
from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from models import db
from models.booking import Booking
from models.booking_message import BookingMessage, MessageDirection
from models.listing import Listing
from models.staff import Staff, StaffRole
from services.errors import ExternalServiceError
from utils.clock import utcnow
from utils.phone import normalize_phone

logger = logging.getLogger(__name__)


class WhatsAppNotifier:
    def __init__(self, account_sid: Optional[str], auth_token: Optional[str], from_number: Optional[str]):
        self.from_number = from_number
        self.enabled = bool(account_sid and auth_token and from_number)
        self.client = TwilioClient(account_sid, auth_token) if self.enabled else None
        if not self.enabled:
            logger.info("WhatsApp notifications disabled - Twilio credentials not configured")

    @classmethod
    def from_config(cls, config) -> "WhatsAppNotifier":
        return cls(
            config.get("TWILIO_ACCOUNT_SID"),
            config.get("TWILIO_AUTH_TOKEN"),
            config.get("TWILIO_WHATSAPP_NUMBER"),
        )

    def send(self, to_number: str, body: str, media_url: Optional[str] = None) -> Optional[str]:
        """Send one WhatsApp message and return its SID, or None when the channel is disabled."""
        if not self.enabled:
            logger.info("WhatsApp disabled, would send to %s", to_number)
            return None

        payload = {
            "body": body,
            "from_": f"whatsapp:{self.from_number}",
            "to": f"whatsapp:{to_number}",
        }
        if media_url:
            payload["media_url"] = [media_url]

        try:
            message = self.client.messages.create(**payload)
        except TwilioException as exc:
            raise ExternalServiceError(f"WhatsApp send to {to_number} failed: {exc}") from exc
        return message.sid


def get_notifier() -> WhatsAppNotifier:
    return current_app.extensions["whatsapp"]


def is_marketplace_listing(listing: Listing) -> bool:
    return listing.source.value == current_app.config.get("MARKETPLACE_SOURCE_TAG", "INSTACHARTER")


def resolve_staff_audience(listing: Listing) -> list[Staff]:
    """Marketplace deals and deals without an owning operator go to every admin."""
    if is_marketplace_listing(listing) or listing.created_by_operator_id is None:
        return (
            Staff.query
            .filter_by(role=StaffRole.ADMIN, is_active=True)
            .order_by(Staff.id.asc())
            .all()
        )

    operator = listing.operator
    if operator is None or not operator.is_active:
        return []
    return [operator]


def _dispatch(phone: Optional[str], body: str, recipient: str, media_url: Optional[str] = None) -> tuple[str, Optional[str]]:
    """Send one message; returns (status, sid) with status SENT, FAILED or SKIPPED."""
    to_number = normalize_phone(phone, current_app.config.get("DEFAULT_COUNTRY_CODE", "+234"))
    if not to_number:
        logger.warning("No phone number for %s, skipping WhatsApp message", recipient)
        return "SKIPPED", None

    try:
        sid = get_notifier().send(to_number, body, media_url=media_url)
    except Exception:
        logger.exception("Failed to send WhatsApp message to %s", recipient)
        return "FAILED", None

    if sid is None:
        return "SKIPPED", None
    logger.info("WhatsApp message sent to %s, SID: %s", recipient, sid)
    return "SENT", sid


def notify_staff(booking: Booking, body: str) -> int:
    audience = resolve_staff_audience(booking.listing)
    logger.info("Notifying %d staff member(s) about %s", len(audience), booking.reference_number)
    results = [_dispatch(member.phone, body, member.full_name) for member in audience]
    return sum(1 for status, _ in results if status == "SENT")


def notify_client(booking: Booking, body: str, media_url: Optional[str] = None) -> bool:
    """Message the client and keep a copy in the booking's conversation log."""
    status, sid = _dispatch(booking.client_phone, body, booking.client_name, media_url=media_url)
    db.session.add(BookingMessage(
        booking_id=booking.id,
        direction=MessageDirection.OUTBOUND,
        content=body,
        media_url=media_url,
        status=status,
        external_sid=sid,
        sent_at=utcnow() if status == "SENT" else None,
    ))
    db.session.commit()
    return status == "SENT"


def record_inbound_message(booking: Booking, body: Optional[str], media_url: Optional[str], sid: Optional[str]) -> BookingMessage:
    message = BookingMessage(
        booking_id=booking.id,
        direction=MessageDirection.INBOUND,
        content=body,
        media_url=media_url,
        status="RECEIVED",
        external_sid=sid,
    )
    db.session.add(message)
    db.session.commit()
    return message
