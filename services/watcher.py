"""Scheduled sweeps, run from the CLI by an external scheduler.

Both are safe to run concurrently: every change is a conditional update, so a
booking or listing another sweep already handled is skipped.
"""
import logging

from sqlalchemy import select, update

from models import db
from models.booking import Booking, BookingStatus
from models.listing import BOOKABLE_STATUSES, ClosedReason, Listing, ListingSource, ListingStatus
from services.errors import InvalidTransition
from services.lifecycle import expire_booking
from utils.audit import log_activity
from utils.clock import utcnow

logger = logging.getLogger(__name__)


def sweep_expired_holds(now=None) -> list[str]:
    """Expire every APPROVED booking past its payment deadline. Returns the references expired."""
    now = now or utcnow()
    booking_ids = db.session.execute(
        select(Booking.id)
        .where(Booking.status == BookingStatus.APPROVED, Booking.payment_deadline < now)
        .order_by(Booking.payment_deadline.asc())
    ).scalars().all()

    expired = []
    for booking_id in booking_ids:
        try:
            booking = expire_booking(booking_id, now=now)
        except InvalidTransition:
            logger.info("Booking %s left APPROVED before the sweep reached it", booking_id)
            continue
        except Exception:
            # later holds in the batch still get expired
            db.session.rollback()
            logger.exception("Failed to expire booking %s, continuing sweep", booking_id)
            continue
        expired.append(booking.reference_number)

    if expired:
        logger.info("Expired %d payment hold(s)", len(expired))
    return expired


def close_departed_listings(now=None) -> int:
    """Close own (admin/operator) listings whose departure time has passed."""
    now = now or utcnow()
    result = db.session.execute(
        update(Listing)
        .where(
            Listing.departure_at < now,
            Listing.status.in_(BOOKABLE_STATUSES),
            Listing.source.in_((ListingSource.ADMIN, ListingSource.OPERATOR)),
        )
        .values(status=ListingStatus.CLOSED, closed_reason=ClosedReason.DEPARTED)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()

    count = result.rowcount
    if count:
        logger.info("Closed %d departed listing(s)", count)
        log_activity(
            "EMPTY_LEG_CLEANUP",
            target_type="Listing",
            target_id="cleanup",
            description=f"Closed {count} departed empty leg(s)",
            metadata={"count": count},
        )
    return count
