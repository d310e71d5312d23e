import enum

from models.db import db
from utils.clock import utcnow


class ListingStatus(enum.Enum):
    PUBLISHED = "PUBLISHED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    UNAVAILABLE = "UNAVAILABLE"


BOOKABLE_STATUSES = (ListingStatus.PUBLISHED, ListingStatus.OPEN)


class ClosedReason(enum.Enum):
    SOLD_OUT = "SOLD_OUT"
    DEPARTED = "DEPARTED"
    WITHDRAWN = "WITHDRAWN"


class PriceMode(enum.Enum):
    FIXED = "FIXED"
    CONTACT = "CONTACT"


class ListingSource(enum.Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"
    INSTACHARTER = "INSTACHARTER"


class Listing(db.Model):
    """An empty leg: one sellable seat allocation on a repositioning flight."""

    __tablename__ = "listings"

    id = db.Column(db.Integer, primary_key=True)

    departure_airport_id = db.Column(db.Integer, db.ForeignKey("airports.id"), nullable=False)
    arrival_airport_id = db.Column(db.Integer, db.ForeignKey("airports.id"), nullable=False)
    departure_at = db.Column(db.DateTime, nullable=False, index=True)
    aircraft_name = db.Column(db.String(120), nullable=True)

    total_seats = db.Column(db.Integer, nullable=False)
    # only ever changed through services.ledger
    available_seats = db.Column(db.Integer, nullable=False)

    price_mode = db.Column(db.Enum(PriceMode, native_enum=False, length=20), nullable=False, default=PriceMode.FIXED)
    price = db.Column(db.Numeric(12, 2), nullable=True)  # USD, whole flight

    status = db.Column(db.Enum(ListingStatus, native_enum=False, length=20), nullable=False, default=ListingStatus.PUBLISHED)
    # set whenever status becomes CLOSED; only SOLD_OUT listings reopen on restore
    closed_reason = db.Column(db.Enum(ClosedReason, native_enum=False, length=20), nullable=True)
    source = db.Column(db.Enum(ListingSource, native_enum=False, length=20), nullable=False, default=ListingSource.ADMIN)
    external_id = db.Column(db.String(80), nullable=True, index=True)

    created_by_admin_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)
    created_by_operator_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    departure_airport = db.relationship("Airport", foreign_keys=[departure_airport_id])
    arrival_airport = db.relationship("Airport", foreign_keys=[arrival_airport_id])
    operator = db.relationship("Staff", foreign_keys=[created_by_operator_id])

    __table_args__ = (
        db.CheckConstraint("available_seats >= 0", name="ck_listing_seats_non_negative"),
        db.CheckConstraint("available_seats <= total_seats", name="ck_listing_seats_within_total"),
    )

    @property
    def route_label(self) -> str:
        return f"{self.departure_airport.code} → {self.arrival_airport.code}"
