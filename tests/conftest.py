from datetime import timedelta
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.airport import Airport
from models.booking import Booking, BookingStatus
from models.client import Client
from models.listing import Listing, ListingSource, ListingStatus, PriceMode
from models.staff import Staff, StaffRole
from security.session import create_session
from services.errors import ExternalServiceError
from utils.clock import utcnow
from utils.reference import generate_reference_number


class FakeNotifier:
    """Records WhatsApp sends instead of calling Twilio."""

    enabled = True

    def __init__(self):
        self.sent = []
        self.failing = set()

    def send(self, to_number, body, media_url=None):
        if to_number in self.failing:
            raise ExternalServiceError(f"WhatsApp send to {to_number} failed")
        self.sent.append((to_number, body))
        return f"SM{len(self.sent):04d}"

    def sent_to(self, to_number):
        return [body for number, body in self.sent if number == to_number]


@pytest.fixture
def app():
    app = create_app(TestConfig)
    app.extensions["whatsapp"] = FakeNotifier()
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def notifier(app):
    return app.extensions["whatsapp"]


@pytest.fixture
def airports(app):
    lagos = Airport(iata_code="LOS", icao_code="DNMM", name="Murtala Muhammed International",
                    municipality="Lagos", latitude=6.5774, longitude=3.3212, time_zone="Africa/Lagos")
    abuja = Airport(iata_code="ABV", icao_code="DNAA", name="Nnamdi Azikiwe International",
                    municipality="Abuja", latitude=9.0068, longitude=7.2632, time_zone="Africa/Lagos")
    db.session.add_all([lagos, abuja])
    db.session.commit()
    return lagos, abuja


@pytest.fixture
def make_staff(app):
    counter = {"n": 0}

    def _make(role=StaffRole.ADMIN, phone="auto", is_active=True, full_name=None):
        counter["n"] += 1
        n = counter["n"]
        staff = Staff(
            email=f"staff{n}@example.com",
            full_name=full_name or f"Staff Member {n}",
            phone=f"+23480100000{n:02d}" if phone == "auto" else phone,
            role=role,
            is_active=is_active,
        )
        db.session.add(staff)
        db.session.commit()
        return staff

    return _make


@pytest.fixture
def admin(make_staff):
    return make_staff(StaffRole.ADMIN, full_name="Admin One")


@pytest.fixture
def make_listing(airports):
    lagos, abuja = airports

    def _make(total_seats=8, available_seats=None, price=Decimal("5000.00"), price_mode=PriceMode.FIXED,
              status=ListingStatus.PUBLISHED, source=ListingSource.ADMIN, departure_at=None,
              operator=None, external_id=None, closed_reason=None):
        listing = Listing(
            departure_airport_id=lagos.id,
            arrival_airport_id=abuja.id,
            departure_at=departure_at or utcnow() + timedelta(days=7),
            aircraft_name="Embraer Phenom 300",
            total_seats=total_seats,
            available_seats=total_seats if available_seats is None else available_seats,
            price_mode=price_mode,
            price=price if price_mode == PriceMode.FIXED else None,
            status=status,
            source=source,
            external_id=external_id,
            closed_reason=closed_reason,
            created_by_operator_id=operator.id if operator else None,
        )
        db.session.add(listing)
        db.session.commit()
        return listing

    return _make


@pytest.fixture
def make_booking(app):
    counter = {"n": 0}

    def _make(listing, seats=2, status=BookingStatus.PENDING, phone=None, name="Ada Obi",
              email="ada@example.com", total_price=None, **fields):
        counter["n"] += 1
        phone = phone or f"+23480300000{counter['n']:02d}"
        client = Client.query.filter_by(phone=phone).first()
        if client is None:
            client = Client(phone=phone, full_name=name, email=email)
            db.session.add(client)

        booking = Booking(
            reference_number=generate_reference_number("PEX-EL"),
            listing_id=listing.id,
            client=client,
            client_name=name,
            client_email=email,
            client_phone=phone,
            seats_requested=seats,
            total_price=(listing.price or 0) if total_price is None else total_price,
            status=status,
            **fields,
        )
        db.session.add(booking)
        db.session.commit()
        return booking

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(staff):
        return {"Authorization": f"Bearer {create_session(staff.id)}"}

    return _headers
