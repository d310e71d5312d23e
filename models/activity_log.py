from models.db import db
from utils.clock import utcnow


class ActivityLog(db.Model):
    """Append-only audit trail of booking transitions and forwarding attempts."""

    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.Integer, nullable=True)  # null for client and system events
    action = db.Column(db.String(80), nullable=False)  # e.g. EMPTY_LEG_QUOTE_APPROVE
    target_type = db.Column(db.String(80), nullable=True)  # e.g. Booking, Listing
    target_id = db.Column(db.String(80), nullable=True)
    description = db.Column(db.Text, nullable=True)

    client_phone = db.Column(db.String(30), nullable=True)
    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)
