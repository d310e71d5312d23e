from .db import db
from .staff import Staff, StaffRole
from .session import StaffSession
from .airport import Airport
from .listing import Listing, ListingStatus, ListingSource, PriceMode, ClosedReason
from .client import Client
from .booking import Booking, BookingStatus, RejectionReason
from .payment import Payment
from .activity_log import ActivityLog
from .booking_message import BookingMessage, MessageDirection
from .settings import AppSettings
