from unittest.mock import MagicMock

import pytest
from twilio.base.exceptions import TwilioException

from models.booking_message import MessageDirection
from models.listing import ListingSource
from models.staff import StaffRole
from services.errors import ExternalServiceError
from services.notifications import (
    WhatsAppNotifier,
    notify_client,
    notify_staff,
    resolve_staff_audience,
)


class TestStaffAudience:
    def test_marketplace_listing_goes_to_all_active_admins(self, make_staff, make_listing):
        first = make_staff(StaffRole.ADMIN)
        second = make_staff(StaffRole.ADMIN)
        make_staff(StaffRole.ADMIN, is_active=False)
        operator = make_staff(StaffRole.OPERATOR)
        listing = make_listing(source=ListingSource.INSTACHARTER, operator=operator)

        assert resolve_staff_audience(listing) == [first, second]

    def test_operator_listing_goes_to_operator(self, make_staff, make_listing):
        make_staff(StaffRole.ADMIN)
        operator = make_staff(StaffRole.OPERATOR)
        listing = make_listing(source=ListingSource.OPERATOR, operator=operator)

        assert resolve_staff_audience(listing) == [operator]

    def test_inactive_operator_gets_nothing(self, make_staff, make_listing):
        operator = make_staff(StaffRole.OPERATOR, is_active=False)
        listing = make_listing(source=ListingSource.OPERATOR, operator=operator)

        assert resolve_staff_audience(listing) == []

    def test_listing_without_operator_goes_to_admins(self, admin, make_listing):
        assert resolve_staff_audience(make_listing()) == [admin]


class TestFanOut:
    def test_one_failed_recipient_does_not_stop_the_rest(self, make_staff, make_listing, make_booking, notifier):
        first = make_staff(StaffRole.ADMIN)
        second = make_staff(StaffRole.ADMIN)
        notifier.failing.add(first.phone)
        booking = make_booking(make_listing())

        delivered = notify_staff(booking, "hello")

        assert delivered == 1
        assert notifier.sent_to(second.phone) == ["hello"]

    def test_staff_without_phone_skipped(self, make_staff, make_listing, make_booking, notifier):
        make_staff(StaffRole.ADMIN, phone=None)
        booking = make_booking(make_listing())

        assert notify_staff(booking, "hello") == 0
        assert notifier.sent == []

    def test_client_message_uses_booking_phone(self, make_listing, make_booking, notifier):
        booking = make_booking(make_listing(), phone="+2348031234567")

        assert notify_client(booking, "hi") is True
        assert notifier.sent == [("+2348031234567", "hi")]

    def test_client_message_without_channel_is_logged_as_skipped(self, app, make_listing, make_booking):
        app.extensions["whatsapp"] = WhatsAppNotifier(None, None, None)
        booking = make_booking(make_listing())

        assert notify_client(booking, "hi", media_url="https://example.com/ticket.pdf") is False

        message = booking.messages.one()
        assert message.status == "SKIPPED"
        assert message.media_url == "https://example.com/ticket.pdf"
        assert message.direction == MessageDirection.OUTBOUND


class TestWhatsAppNotifier:
    def test_disabled_without_credentials(self):
        notifier = WhatsAppNotifier(None, None, None)

        assert notifier.enabled is False
        assert notifier.send("+2348031234567", "hi") is None

    def test_sends_through_twilio(self):
        notifier = WhatsAppNotifier("AC" + "0" * 32, "token", "+15550001111")
        notifier.client = MagicMock()
        notifier.client.messages.create.return_value.sid = "SM123"

        assert notifier.send("+2348031234567", "hi") == "SM123"
        notifier.client.messages.create.assert_called_once_with(
            body="hi",
            from_="whatsapp:+15550001111",
            to="whatsapp:+2348031234567",
        )

    def test_twilio_failure_is_wrapped(self):
        notifier = WhatsAppNotifier("AC" + "0" * 32, "token", "+15550001111")
        notifier.client = MagicMock()
        notifier.client.messages.create.side_effect = TwilioException("unreachable")

        with pytest.raises(ExternalServiceError):
            notifier.send("+2348031234567", "hi")
