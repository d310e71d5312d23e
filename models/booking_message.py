import enum

from models.db import db
from utils.clock import utcnow


class MessageDirection(enum.Enum):
    OUTBOUND = "OUTBOUND"
    INBOUND = "INBOUND"


class BookingMessage(db.Model):
    """WhatsApp conversation history for a booking, both directions."""

    __tablename__ = "booking_messages"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    direction = db.Column(db.Enum(MessageDirection, native_enum=False, length=10), nullable=False)
    content = db.Column(db.Text, nullable=True)
    media_url = db.Column(db.String(512), nullable=True)

    status = db.Column(db.String(20), nullable=False)  # SENT, FAILED, SKIPPED, RECEIVED
    external_sid = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    sent_at = db.Column(db.DateTime, nullable=True)

    booking = db.relationship("Booking", backref=db.backref("messages", lazy="dynamic"))
