import logging

import stripe
from flask import Blueprint, current_app, request, jsonify

from models import db
from models.booking import Booking, BookingStatus
from models.payment import Payment
from services.errors import BookingError
from services.lifecycle import STRIPE_RECEIPT_PREFIX, attach_payment_receipt
from utils.audit import log_activity
from utils.clock import utcnow

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.data

    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify(error="Invalid webhook signature"), 400

    if event["type"] != "checkout.session.completed":
        return jsonify(received=True), 200

    session = event["data"]["object"]
    session_id = session["id"]
    payment = Payment.query.filter_by(stripe_session_id=session_id).first() if session_id else None
    if payment is None:
        logger.warning("Stripe session %s has no matching payment", session_id)
        return jsonify(received=True), 200

    if payment.status not in ("PAID", "SUCCESS"):
        payment.status = "PAID"
        payment.paid_at = utcnow()
        db.session.commit()
        log_activity(
            "PAYMENT_PAID",
            target_type="Payment",
            target_id=payment.id,
            metadata={"stripe_session_id": session_id, "booking_id": payment.booking_id},
        )

    # The receipt goes on the booking; staff still confirm the payment.
    booking = db.session.get(Booking, payment.booking_id)
    if booking is not None and booking.status == BookingStatus.APPROVED and not booking.payment_receipt_ref:
        try:
            attach_payment_receipt(booking.id, f"{STRIPE_RECEIPT_PREFIX}{session_id}")
        except BookingError as exc:
            logger.info("Receipt not attached to booking %s: %s", booking.id, exc)

    return jsonify(received=True), 200
