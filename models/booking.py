import enum

from models.db import db
from utils.clock import utcnow


class BookingStatus(enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"
    EXPIRED = "EXPIRED"
    COMPLETED = "COMPLETED"


TERMINAL_STATUSES = frozenset({
    BookingStatus.REJECTED,
    BookingStatus.PAID,
    BookingStatus.EXPIRED,
    BookingStatus.COMPLETED,
})


class RejectionReason(enum.Enum):
    AIRCRAFT_UNAVAILABLE = "AIRCRAFT_UNAVAILABLE"
    ROUTE_NOT_SERVICEABLE = "ROUTE_NOT_SERVICEABLE"
    INVALID_DATES = "INVALID_DATES"
    PRICING_ISSUE = "PRICING_ISSUE"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    DEAL_NOT_AVAILABLE = "DEAL_NOT_AVAILABLE"
    NO_PAYMENT_MADE = "NO_PAYMENT_MADE"
    OTHER = "OTHER"


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    reference_number = db.Column(db.String(40), unique=True, nullable=False, index=True)

    listing_id = db.Column(db.Integer, db.ForeignKey("listings.id"), nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)

    # contact snapshot at request time
    client_name = db.Column(db.String(160), nullable=False)
    client_email = db.Column(db.String(255), nullable=True)
    client_phone = db.Column(db.String(30), nullable=False)

    seats_requested = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)  # USD

    status = db.Column(
        db.Enum(BookingStatus, native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    rejection_reason = db.Column(db.Enum(RejectionReason, native_enum=False, length=40), nullable=True)
    rejection_note = db.Column(db.Text, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)

    approved_by_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    payment_deadline = db.Column(db.DateTime, nullable=True, index=True)
    payment_link = db.Column(db.String(512), nullable=True)
    expired_at = db.Column(db.DateTime, nullable=True)

    payment_receipt_ref = db.Column(db.String(255), nullable=True)
    confirmed_by_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    ticket_number = db.Column(db.String(40), unique=True, nullable=True)

    external_request_id = db.Column(db.String(80), nullable=True)
    forwarded_to_external = db.Column(db.Boolean, default=False, nullable=False)
    forwarded_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    listing = db.relationship("Listing", backref=db.backref("bookings", lazy="dynamic"))
    client = db.relationship("Client", backref=db.backref("bookings", lazy=True))

    __table_args__ = (
        db.CheckConstraint("seats_requested >= 1", name="ck_booking_seats_positive"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
