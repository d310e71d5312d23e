from models.db import db


class AppSettings(db.Model):
    """Single-row table for counters shared by every worker."""

    __tablename__ = "app_settings"

    id = db.Column(db.Integer, primary_key=True)  # always 1
    ticket_counter = db.Column(db.Integer, nullable=False, default=0)
