from models.db import db
from utils.clock import utcnow


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    provider = db.Column(db.String(20), nullable=False, default="STRIPE")
    amount = db.Column(db.Integer, nullable=False)   # smallest unit
    currency = db.Column(db.String(10), nullable=False, default="usd")

    status = db.Column(db.String(20), nullable=False, default="INIT")  # INIT, PAID, SUCCESS, FAILED
    stripe_session_id = db.Column(db.String(255), nullable=True, unique=True, index=True)
    reference_number = db.Column(db.String(60), nullable=True, unique=True)  # PAY-<booking ref>, set on confirmation
    confirmed_by_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)
