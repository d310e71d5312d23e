from datetime import timedelta
from decimal import Decimal

from models.booking import Booking, RejectionReason

REJECTION_MESSAGES = {
    RejectionReason.AIRCRAFT_UNAVAILABLE: "the aircraft is no longer available for this route",
    RejectionReason.ROUTE_NOT_SERVICEABLE: "we are unable to service this route at this time",
    RejectionReason.INVALID_DATES: "the requested dates are not available",
    RejectionReason.PRICING_ISSUE: "there is a pricing discrepancy that cannot be resolved",
    RejectionReason.CAPACITY_EXCEEDED: "the requested number of seats exceeds availability",
    RejectionReason.DEAL_NOT_AVAILABLE: "this empty leg deal is no longer available",
    RejectionReason.NO_PAYMENT_MADE: "payment was not received within the required timeframe",
    RejectionReason.OTHER: "we are unable to proceed with this booking at this time",
}


def format_usd(amount) -> str:
    if not amount:
        return "Price on request"
    return f"${Decimal(amount):,.2f} USD"


def _flight_lines(booking: Booking) -> str:
    listing = booking.listing
    departs = listing.departure_at.strftime("%A, %d %B %Y at %H:%M UTC")
    return (
        f"Route: {listing.route_label}\n"
        f"Date: {departs}\n"
        f"Aircraft: {listing.aircraft_name or 'TBA'}\n"
        f"Seats: {booking.seats_requested}"
    )


def quote_requested(booking: Booking) -> str:
    return (
        "*New Empty Leg Quote Request*\n\n"
        f"Reference: {booking.reference_number}\n"
        f"Client: {booking.client_name}\n"
        f"Phone: {booking.client_phone}\n"
        f"{_flight_lines(booking)}\n"
        f"Total: {format_usd(booking.total_price)}\n\n"
        "Please review in the dashboard."
    )


def quote_approved(booking: Booking) -> str:
    deadline = booking.payment_deadline.strftime("%d %b %Y %H:%M UTC")
    payment_line = (
        f"Pay securely here: {booking.payment_link}\n\n"
        if booking.payment_link
        else "Our team will send payment instructions shortly.\n\n"
    )
    return (
        f"*QUOTE APPROVED - {booking.reference_number}*\n\n"
        f"Dear {booking.client_name},\n\n"
        "Your empty leg booking has been approved!\n\n"
        f"{_flight_lines(booking)}\n\n"
        f"*Total Price: {format_usd(booking.total_price)}*\n\n"
        f"{payment_line}"
        f"Payment Deadline: {deadline}\n\n"
        "After payment, please send your payment receipt to this number."
    )


def quote_rejected(booking: Booking) -> str:
    reason = REJECTION_MESSAGES.get(booking.rejection_reason, REJECTION_MESSAGES[RejectionReason.OTHER])
    note = f"\n\nNote: {booking.rejection_note}" if booking.rejection_note else ""
    return (
        f"*Booking Update - {booking.reference_number}*\n\n"
        f"Dear {booking.client_name},\n\n"
        f"Unfortunately we cannot proceed with your request for {booking.listing.route_label} "
        f"because {reason}.{note}\n\n"
        "Reply to this message and our team will help you find an alternative."
    )


def payment_confirmed(booking: Booking) -> str:
    check_in = (booking.listing.departure_at - timedelta(hours=2)).strftime("%d %b %Y %H:%M UTC")
    return (
        f"*FLIGHT CONFIRMED - {booking.reference_number}*\n\n"
        f"Dear {booking.client_name},\n\n"
        "We have received your payment. Your seats are confirmed.\n\n"
        f"E-Ticket: {booking.ticket_number}\n"
        f"{_flight_lines(booking)}\n\n"
        f"Check-in: {check_in}\n\n"
        "Please quote your e-ticket number at check-in. Have a great flight!"
    )


def quote_resent(booking: Booking) -> str:
    deadline = booking.payment_deadline.strftime("%d %b %Y %H:%M UTC")
    payment_line = (
        f"Pay securely here: {booking.payment_link}\n\n"
        if booking.payment_link
        else "Our team will send payment instructions shortly.\n\n"
    )
    return (
        f"*UPDATED QUOTE - {booking.reference_number}*\n\n"
        f"Dear {booking.client_name},\n\n"
        "Your quote has been updated. Any previous payment link is no longer valid.\n\n"
        f"{_flight_lines(booking)}\n\n"
        f"*Total Price: {format_usd(booking.total_price)}*\n\n"
        f"{payment_line}"
        f"Payment Deadline: {deadline}"
    )


def receipt_received(booking: Booking) -> str:
    return (
        "*Payment Receipt Received*\n\n"
        f"Reference: {booking.reference_number}\n"
        f"Client: {booking.client_name}\n"
        f"Phone: {booking.client_phone}\n"
        f"Total: {format_usd(booking.total_price)}\n\n"
        "Please verify the payment and confirm in the dashboard."
    )


def receipt_acknowledged(booking: Booking) -> str:
    return (
        f"Thank you! Your payment receipt for {booking.reference_number} has been received. "
        "Our team will review and confirm shortly."
    )


def hold_expired(booking: Booking) -> str:
    return (
        f"*Booking Expired - {booking.reference_number}*\n\n"
        f"Dear {booking.client_name},\n\n"
        f"The payment window for your seats on {booking.listing.route_label} has closed "
        "and the reservation has been released.\n\n"
        "Reply to this message if you would still like to fly."
    )
