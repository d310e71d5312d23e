from flask import Blueprint, jsonify, request, g
from sqlalchemy import or_

from models.booking import Booking, BookingStatus
from models.listing import Listing
from security.rbac import require_roles
from services.errors import ValidationError
from services.lifecycle import (
    approve_booking,
    attach_payment_receipt,
    confirm_payment,
    get_booking,
    reject_booking,
    resend_quote,
)
from services.transitions import allowed_events

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")


def _iso(value):
    return value.isoformat() if value else None


def _booking_json(b: Booking) -> dict:
    listing = b.listing
    return {
        "id": b.id,
        "referenceNumber": b.reference_number,
        "status": b.status.value,
        "allowedActions": [e.value for e in allowed_events(b.status)],
        "listingId": b.listing_id,
        "route": listing.route_label,
        "departureAt": _iso(listing.departure_at),
        "clientName": b.client_name,
        "clientEmail": b.client_email,
        "clientPhone": b.client_phone,
        "seatsRequested": b.seats_requested,
        "totalPrice": str(b.total_price) if b.total_price is not None else None,
        "rejectionReason": b.rejection_reason.value if b.rejection_reason else None,
        "rejectionNote": b.rejection_note,
        "paymentDeadline": _iso(b.payment_deadline),
        "paymentLink": b.payment_link,
        "paymentReceiptRef": b.payment_receipt_ref,
        "forwardedToExternal": b.forwarded_to_external,
        "externalRequestId": b.external_request_id,
        "createdAt": _iso(b.created_at),
        "approvedAt": _iso(b.approved_at),
        "paidAt": _iso(b.paid_at),
        "ticketNumber": b.ticket_number,
    }


def _body() -> dict:
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


# ---------- STAFF: list bookings ----------
@bookings_bp.get("")
@require_roles("ADMIN", "OPERATOR")
def list_bookings():
    page = max(request.args.get("page", type=int) or 1, 1)
    limit = request.args.get("limit", type=int) or 20
    limit = max(1, min(limit, 100))

    q = Booking.query.join(Listing, Booking.listing_id == Listing.id)
    if not g.staff.is_admin:
        q = q.filter(Listing.created_by_operator_id == g.staff.id)

    status = (request.args.get("status") or "").strip().upper()
    if status and status != "ALL":
        try:
            q = q.filter(Booking.status == BookingStatus(status))
        except ValueError:
            return jsonify(error="Unknown status"), 400

    search = (request.args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Booking.reference_number.ilike(pattern),
            Booking.client_name.ilike(pattern),
            Booking.client_email.ilike(pattern),
        ))

    total = q.count()
    rows = q.order_by(Booking.created_at.desc(), Booking.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        bookings=[_booking_json(b) for b in rows],
        total=total,
        page=page,
        totalPages=(total + limit - 1) // limit,
    ), 200


@bookings_bp.get("/<int:booking_id>")
@require_roles("ADMIN", "OPERATOR")
def booking_detail(booking_id: int):
    return jsonify(_booking_json(get_booking(booking_id, g.staff))), 200


# ---------- STAFF: decide on a quote ----------
@bookings_bp.post("/<int:booking_id>/approve")
@require_roles("ADMIN", "OPERATOR")
def approve(booking_id: int):
    data = _body()
    booking = approve_booking(booking_id, actor=g.staff, total_price=data.get("totalPrice"))
    return jsonify(_booking_json(booking)), 200


@bookings_bp.post("/<int:booking_id>/reject")
@require_roles("ADMIN", "OPERATOR")
def reject(booking_id: int):
    data = _body()
    booking = reject_booking(
        booking_id,
        actor=g.staff,
        rejection_reason=data.get("rejectionReason"),
        rejection_note=data.get("rejectionNote"),
    )
    return jsonify(_booking_json(booking)), 200


@bookings_bp.post("/<int:booking_id>/resend")
@require_roles("ADMIN", "OPERATOR")
def resend(booking_id: int):
    data = _body()
    booking = resend_quote(booking_id, actor=g.staff, total_price=data.get("totalPrice"))
    return jsonify(_booking_json(booking)), 200


# ---------- STAFF: payment ----------
@bookings_bp.post("/<int:booking_id>/receipt")
@require_roles("ADMIN", "OPERATOR")
def attach_receipt(booking_id: int):
    data = _body()
    booking = attach_payment_receipt(booking_id, data.get("receiptReference"), actor=g.staff)
    return jsonify(_booking_json(booking)), 200


@bookings_bp.post("/<int:booking_id>/confirm-payment")
@require_roles("ADMIN", "OPERATOR")
def confirm(booking_id: int):
    booking = confirm_payment(booking_id, actor=g.staff)
    return jsonify(_booking_json(booking)), 200
