import logging

from models import db

logger = logging.getLogger(__name__)


def _step_name(step) -> str:
    func = getattr(step, "func", step)
    return getattr(func, "__name__", repr(func))


def run_post_commit(booking, *steps) -> None:
    """Run side effects of a committed transition, each behind its own error boundary."""
    reference = booking.reference_number
    for step in steps:
        try:
            step(booking)
        except Exception:
            db.session.rollback()
            logger.exception("Post-commit step %s failed for booking %s", _step_name(step), reference)
