import logging

from flask import Blueprint, Response, current_app, jsonify, request
from twilio.request_validator import RequestValidator
from twilio.twiml.messaging_response import MessagingResponse

from models.booking import Booking, BookingStatus
from services import messages
from services.errors import BookingError
from services.lifecycle import attach_payment_receipt
from services.notifications import notify_staff, record_inbound_message
from utils.phone import normalize_phone

logger = logging.getLogger(__name__)

twilio_webhook_bp = Blueprint("twilio_webhook", __name__, url_prefix="/webhooks/twilio")


def _twiml(reply=None) -> Response:
    response = MessagingResponse()
    if reply:
        response.message(reply)
    return Response(str(response), status=200, mimetype="application/xml")


def _sender_phone(raw) -> str:
    raw = (raw or "").strip()
    if raw.startswith("whatsapp:"):
        raw = raw[len("whatsapp:"):]
    return normalize_phone(raw, current_app.config.get("DEFAULT_COUNTRY_CODE", "+234"))


@twilio_webhook_bp.post("/receipt")
def inbound_receipt():
    """Client replies on WhatsApp; a photo sent against an approved booking is its receipt."""
    auth_token = current_app.config.get("TWILIO_AUTH_TOKEN")
    if not auth_token:
        return jsonify(error="Twilio auth token not configured"), 500

    signature = request.headers.get("X-Twilio-Signature", "")
    if not RequestValidator(auth_token).validate(request.url, request.form, signature):
        return jsonify(error="Invalid Twilio signature"), 403

    phone = _sender_phone(request.form.get("From"))
    if not phone:
        return _twiml()

    booking = (
        Booking.query
        .filter_by(client_phone=phone, status=BookingStatus.APPROVED)
        .order_by(Booking.approved_at.desc(), Booking.id.desc())
        .first()
    )
    if booking is None:
        logger.info("Inbound WhatsApp from %s has no approved booking", phone)
        return _twiml()

    media_url = request.form.get("MediaUrl0") if request.form.get("NumMedia", "0") != "0" else None
    record_inbound_message(booking, request.form.get("Body"), media_url, request.form.get("MessageSid"))
    if not media_url:
        return _twiml()

    try:
        attach_payment_receipt(booking.id, media_url)
    except BookingError as exc:
        logger.info("Receipt not attached to booking %s: %s", booking.id, exc)
        return _twiml()

    notify_staff(booking, messages.receipt_received(booking))
    return _twiml(messages.receipt_acknowledged(booking))
