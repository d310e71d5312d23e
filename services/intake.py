"""Quote request intake for empty-leg listings.

Validation, listing lookup and the seat check happen before anything is written.
Once the booking row is committed, forwarding, the audit entry and staff
notifications run best-effort and cannot undo it.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BookingStatus
from models.listing import BOOKABLE_STATUSES, Listing, PriceMode
from services import messages
from services.contacts import ClientContact, resolve_client
from services.errors import InsufficientInventory, NotBookable, NotFound, ValidationError
from services.forwarding import forward_booking
from services.hooks import run_post_commit
from services.notifications import notify_staff
from utils.audit import log_activity
from utils.clock import utcnow
from utils.phone import is_valid_phone, normalize_phone
from utils.reference import generate_reference_number

logger = logging.getLogger(__name__)


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _positive_int(value, error: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(error)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise ValidationError(error)
    return value


@dataclass(frozen=True)
class QuoteRequest:
    listing_id: int
    seats_requested: int
    first_name: str
    last_name: str
    email: str
    phone: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def from_payload(cls, data: dict, default_country_code: str = "+234") -> "QuoteRequest":
        if not data.get("listingId"):
            raise ValidationError("Empty leg ID is required")

        contact = data.get("contactInfo") or {}
        if not isinstance(contact, dict):
            raise ValidationError("Missing required contact information")
        fields = {
            key: (contact.get(key) or "").strip() if isinstance(contact.get(key), str) else ""
            for key in ("firstName", "lastName", "email", "phone")
        }
        if not all(fields.values()):
            raise ValidationError("Missing required contact information")
        if not _is_valid_email(fields["email"]):
            raise ValidationError("Invalid email")
        phone = normalize_phone(fields["phone"], default_country_code)
        if not is_valid_phone(phone):
            raise ValidationError("Invalid phone number")

        return cls(
            listing_id=_positive_int(data.get("listingId"), "Empty leg ID is invalid"),
            seats_requested=_positive_int(data.get("seatsRequested"), "At least 1 seat must be requested"),
            first_name=fields["firstName"],
            last_name=fields["lastName"],
            email=fields["email"].lower(),
            phone=phone,
        )


def quote_price(listing: Listing) -> Decimal:
    """Flat price for the whole flight, not per seat. CONTACT deals are priced at approval."""
    if listing.price_mode == PriceMode.CONTACT:
        return Decimal("0")
    return Decimal(listing.price or 0)


def check_bookable(listing: Listing, seats: int) -> None:
    if listing.status not in BOOKABLE_STATUSES or listing.departure_at <= utcnow():
        raise NotBookable("This deal is no longer available")
    if listing.available_seats < seats:
        raise InsufficientInventory(f"Only {listing.available_seats} seats available")


def _record_quote_created(booking: Booking) -> None:
    log_activity(
        "EMPTY_LEG_QUOTE_CREATE",
        target_type="Booking",
        target_id=booking.id,
        description=f"New empty leg quote request {booking.reference_number} from {booking.client_name}",
        client_phone=booking.client_phone,
        metadata={
            "listingId": booking.listing_id,
            "seatsRequested": booking.seats_requested,
            "totalPrice": booking.total_price,
        },
    )


def _notify_quote_created(booking: Booking) -> None:
    notify_staff(booking, messages.quote_requested(booking))


def submit_quote_request(quote: QuoteRequest) -> Booking:
    listing = db.session.get(Listing, quote.listing_id)
    if listing is None:
        raise NotFound("Empty leg deal not found")
    check_bookable(listing, quote.seats_requested)

    cfg = current_app.config
    prefix = cfg.get("REFERENCE_PREFIX", "PEX-EL")
    suffix_length = cfg.get("REFERENCE_SUFFIX_LENGTH", 6)
    max_attempts = cfg.get("REFERENCE_MAX_ATTEMPTS", 5)
    contact = ClientContact(phone=quote.phone, full_name=quote.full_name, email=quote.email)
    total_price = quote_price(listing)

    for attempt in range(max_attempts):
        client = resolve_client(contact)
        booking = Booking(
            # widen the suffix after each collision
            reference_number=generate_reference_number(prefix, suffix_length + 2 * attempt),
            listing_id=listing.id,
            client=client,
            client_name=quote.full_name,
            client_email=quote.email,
            client_phone=client.phone,
            seats_requested=quote.seats_requested,
            total_price=total_price,
            status=BookingStatus.PENDING,
        )
        db.session.add(booking)
        try:
            db.session.commit()
            break
        except IntegrityError:
            # reference collision or a concurrent first request from the same phone
            db.session.rollback()
            if attempt == max_attempts - 1:
                raise
            logger.warning("Booking insert conflict on attempt %d, retrying", attempt + 1)

    logger.info("Quote %s created for listing %s", booking.reference_number, listing.id)
    run_post_commit(booking, forward_booking, _record_quote_created, _notify_quote_created)
    return booking
