import logging
from datetime import timedelta, timezone
from decimal import Decimal
from typing import Optional

import stripe
from flask import current_app

from models import db
from models.booking import Booking
from models.payment import Payment
from services.errors import ExternalServiceError
from utils.clock import utcnow

logger = logging.getLogger(__name__)

# Stripe only accepts checkout expiries at least 30 minutes out
_MIN_CHECKOUT_LIFETIME = timedelta(minutes=31)


def amount_in_cents(amount) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def create_payment_link(booking: Booking) -> Optional[str]:
    """Open a Stripe Checkout session for an approved booking and attach its URL."""
    cfg = current_app.config
    if not cfg.get("STRIPE_SECRET_KEY"):
        logger.info("Stripe not configured, no payment link for %s", booking.reference_number)
        return None
    if not cfg.get("STRIPE_SUCCESS_URL") or not cfg.get("STRIPE_CANCEL_URL"):
        logger.warning("Stripe success/cancel URLs not configured, no payment link for %s", booking.reference_number)
        return None

    amount = amount_in_cents(booking.total_price or 0)
    if amount <= 0:
        logger.info("Booking %s has no price yet, no payment link", booking.reference_number)
        return None

    currency = cfg.get("PAYMENT_CURRENCY", "usd")
    listing = booking.listing
    params = dict(
        mode="payment",
        line_items=[{
            "price_data": {
                "currency": currency,
                "product_data": {"name": f"Empty leg {listing.route_label} ({booking.reference_number})"},
                "unit_amount": amount,
            },
            "quantity": 1,
        }],
        success_url=cfg["STRIPE_SUCCESS_URL"],
        cancel_url=cfg["STRIPE_CANCEL_URL"],
        client_reference_id=booking.reference_number,
        metadata={
            "booking_id": str(booking.id),
            "reference_number": booking.reference_number,
            "client_phone": booking.client_phone,
        },
    )
    if booking.payment_deadline and booking.payment_deadline - utcnow() >= _MIN_CHECKOUT_LIFETIME:
        params["expires_at"] = int(booking.payment_deadline.replace(tzinfo=timezone.utc).timestamp())
    if booking.client_email:
        params["customer_email"] = booking.client_email

    stripe.api_key = cfg["STRIPE_SECRET_KEY"]
    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as exc:
        raise ExternalServiceError(f"Stripe checkout failed: {exc}") from exc

    db.session.add(Payment(
        booking_id=booking.id,
        provider="STRIPE",
        amount=amount,
        currency=currency,
        status="INIT",
        stripe_session_id=session["id"],
    ))
    booking.payment_link = session["url"]
    db.session.commit()
    return booking.payment_link
