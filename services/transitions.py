"""Booking state machine.

Every status change goes through :func:`compare_and_swap`, which only fires while
the row still holds the expected status. A concurrent writer that lost the race
sees zero affected rows and gets ``InvalidTransition``.
"""
import enum

from sqlalchemy import update

from models import db
from models.booking import Booking, BookingStatus
from services.errors import InvalidTransition


class BookingEvent(enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CONFIRM_PAYMENT = "confirm_payment"
    EXPIRE = "expire"


# event -> (from, to)
TRANSITIONS = {
    BookingEvent.APPROVE: (BookingStatus.PENDING, BookingStatus.APPROVED),
    BookingEvent.REJECT: (BookingStatus.PENDING, BookingStatus.REJECTED),
    BookingEvent.CONFIRM_PAYMENT: (BookingStatus.APPROVED, BookingStatus.PAID),
    BookingEvent.EXPIRE: (BookingStatus.APPROVED, BookingStatus.EXPIRED),
}


def transition_for(current: BookingStatus, event: BookingEvent) -> tuple[BookingStatus, BookingStatus]:
    source, target = TRANSITIONS[event]
    if current != source:
        raise InvalidTransition(f"Booking not {source.value.lower()}")
    return source, target


def allowed_events(current: BookingStatus) -> list[BookingEvent]:
    return [event for event, (source, _) in TRANSITIONS.items() if source == current]


def compare_and_swap(booking_id: int, expected: BookingStatus, new: BookingStatus, *guards, **values) -> bool:
    """UPDATE bookings SET status=new, ... WHERE id=? AND status=expected AND guards."""
    stmt = (
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == expected, *guards)
        .values(status=new, **values)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def apply_transition(booking: Booking, event: BookingEvent, *guards, **values) -> BookingStatus:
    source, target = transition_for(booking.status, event)
    if not compare_and_swap(booking.id, source, target, *guards, **values):
        raise InvalidTransition(f"Booking not {source.value.lower()}")
    return target
