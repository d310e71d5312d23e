import enum

from models.db import db
from utils.clock import utcnow


class StaffRole(enum.Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"


class Staff(db.Model):
    __tablename__ = "staff"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(30), nullable=True)  # WhatsApp number for notifications

    role = db.Column(db.Enum(StaffRole, native_enum=False, length=20), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == StaffRole.ADMIN
