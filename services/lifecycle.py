"""Staff-driven and system-driven booking transitions.

PENDING -> APPROVED | REJECTED, APPROVED -> PAID | EXPIRED. Seats are committed
only on approval and released only on expiry; the status swap and the ledger
change share one transaction.
"""
import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import select, update

from models import db
from models.booking import Booking, BookingStatus, RejectionReason
from models.listing import PriceMode
from models.payment import Payment
from models.settings import AppSettings
from services import messages
from services.errors import InvalidTransition, NotBookable, NotFound, ValidationError
from services.hooks import run_post_commit
from services.ledger import reserve, restore
from services.notifications import notify_client
from services.payments import amount_in_cents, create_payment_link
from services.transitions import BookingEvent, apply_transition, transition_for
from utils.audit import log_activity
from utils.clock import utcnow

logger = logging.getLogger(__name__)

STRIPE_RECEIPT_PREFIX = "stripe:"


def get_booking(booking_id: int, actor=None) -> Booking:
    """Load a booking; operators only see bookings on their own listings."""
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    if actor is not None and not actor.is_admin and booking.listing.created_by_operator_id != actor.id:
        raise NotFound("Booking not found")
    return booking


def parse_price(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("Valid price is required")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("Valid price is required")
    if not price.is_finite() or price <= 0:
        raise ValidationError("Valid price is required")
    return price.quantize(Decimal("0.01"))


def parse_rejection_reason(value) -> RejectionReason:
    if not value:
        raise ValidationError("Rejection reason is required")
    try:
        return RejectionReason(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(r.value for r in RejectionReason)
        raise ValidationError(f"rejectionReason must be one of: {allowed}")


def _final_price(booking: Booking, price):
    if price is not None:
        return price
    if booking.listing.price_mode == PriceMode.CONTACT or not booking.total_price:
        raise ValidationError("Price required")
    return booking.total_price


def _payment_deadline(now):
    return now + timedelta(hours=current_app.config.get("PAYMENT_WINDOW_HOURS", 3))


def _actor_id(actor):
    return actor.id if actor is not None else None


def _audit(action: str, actor, description: str, **metadata):
    def step(booking: Booking) -> None:
        log_activity(
            action,
            actor_id=_actor_id(actor),
            target_type="Booking",
            target_id=booking.id,
            description=description.format(ref=booking.reference_number, client=booking.client_name),
            client_phone=booking.client_phone,
            metadata=metadata or None,
        )
    step.__name__ = f"audit_{action.lower()}"
    return step


def _notify(render):
    def step(booking: Booking) -> None:
        notify_client(booking, render(booking))
    step.__name__ = f"notify_{render.__name__}"
    return step


def approve_booking(booking_id: int, actor=None, total_price=None, now=None) -> Booking:
    booking = get_booking(booking_id, actor)
    transition_for(booking.status, BookingEvent.APPROVE)
    price = _final_price(booking, parse_price(total_price))
    now = now or utcnow()
    deadline = _payment_deadline(now)
    listing_id = booking.listing_id
    seats = booking.seats_requested

    try:
        apply_transition(
            booking,
            BookingEvent.APPROVE,
            total_price=price,
            approved_by_id=_actor_id(actor),
            approved_at=now,
            payment_deadline=deadline,
        )
        # seats are re-checked here, not at intake
        reserve(listing_id, seats)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s approved, %d seat(s) reserved until %s", booking.reference_number, seats, deadline)
    run_post_commit(
        booking,
        create_payment_link,
        _audit(
            "EMPTY_LEG_QUOTE_APPROVE", actor,
            "Approved empty leg quote {ref} for {client}",
            seatsRequested=seats, totalPrice=price, paymentDeadline=deadline.isoformat(),
        ),
        _notify(messages.quote_approved),
    )
    return booking


def reject_booking(booking_id: int, actor=None, rejection_reason=None, rejection_note=None, now=None) -> Booking:
    reason = parse_rejection_reason(rejection_reason)
    note = None
    if isinstance(rejection_note, str) and rejection_note.strip():
        note = rejection_note.strip()
    booking = get_booking(booking_id, actor)

    try:
        # PENDING never held seats, so the ledger is untouched
        apply_transition(
            booking,
            BookingEvent.REJECT,
            rejection_reason=reason,
            rejection_note=note,
            rejected_at=now or utcnow(),
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s rejected (%s)", booking.reference_number, reason.value)
    run_post_commit(
        booking,
        _audit(
            "EMPTY_LEG_QUOTE_REJECT", actor,
            "Rejected empty leg quote {ref} for {client}",
            reason=reason.value, note=note,
        ),
        _notify(messages.quote_rejected),
    )
    return booking


def _update_approved(booking_id: int, **values) -> None:
    """Write fields on a booking that must still be APPROVED at write time."""
    result = db.session.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == BookingStatus.APPROVED)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition("Booking not approved")


def resend_quote(booking_id: int, actor=None, total_price=None, now=None) -> Booking:
    """Re-issue an approved quote with a new price and a fresh payment window.

    The seat hold is kept. Any receipt already attached is cleared since it
    paid a different amount, and a new payment link replaces the old one.
    """
    price = parse_price(total_price)
    if price is None:
        raise ValidationError("Valid price is required")
    booking = get_booking(booking_id, actor)
    if booking.status != BookingStatus.APPROVED:
        raise InvalidTransition("Booking not approved")
    now = now or utcnow()
    if booking.listing.departure_at <= now:
        raise NotBookable("This deal is no longer available")
    deadline = _payment_deadline(now)
    previous_price = booking.total_price

    try:
        _update_approved(
            booking.id,
            total_price=price,
            payment_deadline=deadline,
            payment_receipt_ref=None,
            payment_link=None,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Quote %s resent at %s, payment due %s", booking.reference_number, price, deadline)
    run_post_commit(
        booking,
        create_payment_link,
        _audit(
            "EMPTY_LEG_QUOTE_RESEND", actor,
            "Resent empty leg quote {ref} to {client} with a new price",
            totalPrice=price, previousPrice=previous_price, paymentDeadline=deadline.isoformat(),
        ),
        _notify(messages.quote_resent),
    )
    return booking


def attach_payment_receipt(booking_id: int, receipt_reference, actor=None) -> Booking:
    reference = (receipt_reference or "").strip() if isinstance(receipt_reference, str) else ""
    if not reference:
        raise ValidationError("receiptReference is required")
    booking = get_booking(booking_id, actor)
    if booking.status != BookingStatus.APPROVED:
        raise InvalidTransition("Booking not approved")

    try:
        _update_approved(booking.id, payment_receipt_ref=reference[:255])
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    run_post_commit(
        booking,
        _audit("EMPTY_LEG_PAYMENT_RECEIPT", actor, "Payment receipt attached to {ref}", receiptReference=reference),
    )
    return booking


def _next_ticket_number(now) -> str:
    """Sequential e-ticket number, e.g. PEX-2026-000042. Shares the caller's transaction."""
    result = db.session.execute(
        update(AppSettings)
        .where(AppSettings.id == 1)
        .values(ticket_counter=AppSettings.ticket_counter + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        counter = db.session.execute(
            select(AppSettings.ticket_counter).where(AppSettings.id == 1)
        ).scalar_one()
    else:
        counter = 1
        db.session.add(AppSettings(id=1, ticket_counter=counter))
        db.session.flush()
    prefix = current_app.config.get("TICKET_PREFIX", "PEX")
    return f"{prefix}-{now.year}-{counter:06d}"


def _record_confirmed_payment(booking: Booking, receipt: str, actor, now) -> Payment:
    payment = None
    if receipt.startswith(STRIPE_RECEIPT_PREFIX):
        session_id = receipt[len(STRIPE_RECEIPT_PREFIX):]
        payment = Payment.query.filter_by(stripe_session_id=session_id).first()
    if payment is None:
        payment = Payment(
            booking_id=booking.id,
            provider="BANK_TRANSFER",
            amount=amount_in_cents(booking.total_price or 0),
            currency=current_app.config.get("PAYMENT_CURRENCY", "usd"),
        )
        db.session.add(payment)

    payment.status = "SUCCESS"
    payment.reference_number = f"PAY-{booking.reference_number}"
    payment.confirmed_by_id = _actor_id(actor)
    payment.paid_at = payment.paid_at or now
    return payment


def confirm_payment(booking_id: int, actor=None, now=None) -> Booking:
    booking = get_booking(booking_id, actor)
    if booking.status != BookingStatus.APPROVED:
        raise InvalidTransition("Booking not approved")
    receipt = booking.payment_receipt_ref or ""
    if current_app.config.get("REQUIRE_PAYMENT_RECEIPT", True) and not receipt:
        raise ValidationError("Payment receipt required")
    now = now or utcnow()

    try:
        ticket_number = _next_ticket_number(now)
        apply_transition(
            booking,
            BookingEvent.CONFIRM_PAYMENT,
            paid_at=now,
            confirmed_by_id=_actor_id(actor),
            ticket_number=ticket_number,
        )
        payment = _record_confirmed_payment(booking, receipt, actor, now)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Payment confirmed for booking %s, ticket %s", booking.reference_number, ticket_number)
    run_post_commit(
        booking,
        _audit(
            "EMPTY_LEG_PAYMENT_CONFIRM", actor,
            "Confirmed payment for empty leg booking {ref}",
            ticketNumber=ticket_number,
            paymentReference=payment.reference_number,
            receiptReference=receipt or None,
        ),
        _notify(messages.payment_confirmed),
    )
    return booking


def expire_booking(booking_id: int, now=None) -> Booking:
    """Release an APPROVED hold whose payment deadline has passed.

    The status guard makes a second call (or an overlapping sweep) a no-op that
    raises ``InvalidTransition`` instead of restoring the seats twice.
    """
    now = now or utcnow()
    booking = get_booking(booking_id)
    if booking.status == BookingStatus.APPROVED and (booking.payment_deadline is None or booking.payment_deadline >= now):
        raise InvalidTransition("Payment window still open")
    listing_id = booking.listing_id
    seats = booking.seats_requested

    try:
        apply_transition(
            booking,
            BookingEvent.EXPIRE,
            Booking.payment_deadline < now,
            expired_at=now,
        )
        restore(listing_id, seats)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Booking %s expired, %d seat(s) released", booking.reference_number, seats)
    run_post_commit(
        booking,
        _audit("EMPTY_LEG_QUOTE_EXPIRE", None, "Payment window lapsed for {ref}", seatsRestored=seats),
        _notify(messages.hold_expired),
    )
    return booking
