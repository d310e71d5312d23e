"""Seat bookkeeping for listings.

Both operations are single conditional UPDATE statements so two approvals racing
for the same seats cannot both succeed. They run inside the caller's transaction;
the caller commits or rolls back together with the booking status change.
"""
import logging

from sqlalchemy import case, select, update

from models import db
from models.listing import BOOKABLE_STATUSES, ClosedReason, Listing, ListingStatus
from services.errors import InsufficientInventory, NotBookable, NotFound, ValidationError
from utils.clock import utcnow

logger = logging.getLogger(__name__)


def _execute(stmt):
    return db.session.execute(stmt.execution_options(synchronize_session=False))


def reserve(listing_id: int, seats: int) -> None:
    if seats < 1:
        raise ValidationError("At least 1 seat must be reserved")

    now = utcnow()
    result = _execute(
        update(Listing)
        .where(
            Listing.id == listing_id,
            Listing.status.in_(BOOKABLE_STATUSES),
            Listing.departure_at > now,
            Listing.available_seats >= seats,
        )
        .values(available_seats=Listing.available_seats - seats)
    )
    if result.rowcount == 1:
        # sold out: take it off the market
        _execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.available_seats == 0)
            .values(status=ListingStatus.CLOSED, closed_reason=ClosedReason.SOLD_OUT)
        )
        return

    row = db.session.execute(
        select(Listing.status, Listing.available_seats, Listing.departure_at).where(Listing.id == listing_id)
    ).one_or_none()
    if row is None:
        raise NotFound("Empty leg deal not found")
    if row.departure_at <= now:
        raise NotBookable("This deal is no longer available")
    if row.available_seats < seats:
        raise InsufficientInventory(f"Only {row.available_seats} seats available")
    raise NotBookable("This deal is no longer available")


def restore(listing_id: int, seats: int) -> None:
    """Give seats back, never above total_seats. Must run once per reservation."""
    if seats < 1:
        raise ValidationError("At least 1 seat must be restored")

    # only a listing closed because it sold out goes back on sale, and only before departure
    _execute(
        update(Listing)
        .where(
            Listing.id == listing_id,
            Listing.status == ListingStatus.CLOSED,
            Listing.closed_reason == ClosedReason.SOLD_OUT,
            Listing.departure_at > utcnow(),
        )
        .values(status=ListingStatus.PUBLISHED, closed_reason=None)
    )

    restored = Listing.available_seats + seats
    result = _execute(
        update(Listing)
        .where(Listing.id == listing_id)
        .values(available_seats=case((restored > Listing.total_seats, Listing.total_seats), else_=restored))
    )
    if result.rowcount != 1:
        raise NotFound("Empty leg deal not found")
    logger.info("Restored %d seat(s) on listing %s", seats, listing_id)


def withdraw_listing(listing_id: int) -> None:
    """Take a listing off sale for good. Seats released later by expiries do not reopen it."""
    result = _execute(
        update(Listing)
        .where(Listing.id == listing_id)
        .values(status=ListingStatus.CLOSED, closed_reason=ClosedReason.WITHDRAWN)
    )
    if result.rowcount != 1:
        raise NotFound("Empty leg deal not found")
    db.session.commit()
    logger.info("Listing %s withdrawn", listing_id)
