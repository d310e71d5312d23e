import json

import httpx
import pytest

from models.activity_log import ActivityLog
from models.booking import BookingStatus
from models.listing import ListingSource
from services.errors import ExternalServiceError
from services.forwarding import MarketplaceClient, build_marketplace_request
from services.intake import QuoteRequest, submit_quote_request


BASE_URL = "https://marketplace.test/api/Markets"


class MarketplaceRecorder:
    """httpx transport handler that records requests and replays queued responses."""

    def __init__(self):
        self.requests = []
        self.responses = []

    def __call__(self, request):
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200, json={"data": {"requestId": "REQ-1001"}})

    def payload(self, index=0):
        return json.loads(self.requests[index].content)


@pytest.fixture
def marketplace(app):
    recorder = MarketplaceRecorder()
    app.extensions["marketplace"] = MarketplaceClient(
        BASE_URL, "test-key", "owner-42", transport=httpx.MockTransport(recorder)
    )
    return recorder


@pytest.fixture
def marketplace_listing(make_listing):
    return make_listing(source=ListingSource.INSTACHARTER, external_id="4512")


def _quote(listing):
    return QuoteRequest(
        listing_id=listing.id,
        seats_requested=2,
        first_name="Ada",
        last_name="Obi",
        email="ada@example.com",
        phone="+2348031234567",
    )


class TestForwardBooking:
    def test_marketplace_listing_is_forwarded(self, marketplace, marketplace_listing):
        booking = submit_quote_request(_quote(marketplace_listing))

        assert booking.forwarded_to_external is True
        assert booking.external_request_id == "REQ-1001"
        assert booking.forwarded_at is not None

        request = marketplace.requests[0]
        assert str(request.url) == f"{BASE_URL}/Sendrequest"
        assert request.headers["X-Api-Key"] == "test-key"
        assert ActivityLog.query.filter_by(action="EMPTY_LEG_QUOTE_FORWARD").count() == 1

    def test_payload_shape(self, marketplace, marketplace_listing):
        booking = submit_quote_request(_quote(marketplace_listing))

        payload = marketplace.payload()
        assert payload["owner"] == {"id": "owner-42"}
        assert payload["haves"] == [4512]
        leg = payload["journey"][0]
        assert leg["pax"] == 2
        assert leg["depTime"].endswith("Z")
        assert leg["from"]["name"] == "Lagos (DNMM)"
        assert leg["to"]["timeZone"] == "Africa/Lagos"
        assert payload["customer"]["phone"] == "+2348031234567"
        assert booking.reference_number in payload["customer"]["message"]

    def test_upstream_error_leaves_booking_pending(self, marketplace, marketplace_listing):
        marketplace.responses.append(httpx.Response(500, json={"error": "boom"}))

        booking = submit_quote_request(_quote(marketplace_listing))

        assert booking.status == BookingStatus.PENDING
        assert booking.forwarded_to_external is False
        assert booking.external_request_id is None
        assert ActivityLog.query.filter_by(action="EMPTY_LEG_QUOTE_FORWARD_FAIL").count() == 1

    def test_own_listing_is_not_forwarded(self, marketplace, make_listing):
        booking = submit_quote_request(_quote(make_listing()))

        assert marketplace.requests == []
        assert booking.forwarded_to_external is False

    def test_unconfigured_marketplace_is_skipped(self, app, marketplace_listing):
        booking = submit_quote_request(_quote(marketplace_listing))

        assert app.extensions["marketplace"].enabled is False
        assert booking.forwarded_to_external is False

    def test_non_numeric_external_id_sends_no_haves(self, make_listing, make_booking):
        listing = make_listing(source=ListingSource.INSTACHARTER, external_id="abc-9")
        booking = make_booking(listing)

        assert build_marketplace_request(booking, "owner-42")["haves"] == []


class TestMarketplaceClient:
    def test_missing_request_id(self):
        client = MarketplaceClient(
            BASE_URL, "k", "o", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"data": {}}))
        )
        with pytest.raises(ExternalServiceError, match="requestId"):
            client.send_request({})

    def test_http_error_status(self):
        client = MarketplaceClient(
            BASE_URL, "k", "o", transport=httpx.MockTransport(lambda r: httpx.Response(401))
        )
        with pytest.raises(ExternalServiceError, match="HTTP 401"):
            client.send_request({})

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = MarketplaceClient(BASE_URL, "k", "o", transport=httpx.MockTransport(handler))
        with pytest.raises(ExternalServiceError, match="Marketplace request failed"):
            client.send_request({})

    def test_enabled_needs_key_and_owner(self):
        assert MarketplaceClient(BASE_URL, None, "o").enabled is False
        assert MarketplaceClient(BASE_URL, "k", None).enabled is False
        assert MarketplaceClient(BASE_URL, "k", "o").enabled is True


class TestQuoteEndpointForwarding:
    def _body(self, listing):
        return {
            "listingId": listing.id,
            "seatsRequested": 2,
            "contactInfo": {
                "firstName": "Ada",
                "lastName": "Obi",
                "email": "ada@example.com",
                "phone": "+2348031234567",
            },
        }

    def test_forwarded_request_id_returned(self, client, marketplace, marketplace_listing):
        resp = client.post("/quotes/empty-leg", json=self._body(marketplace_listing))

        assert resp.status_code == 201
        assert resp.get_json()["forwardedToExternal"] is True
        assert resp.get_json()["externalRequestId"] == "REQ-1001"

    def test_forwarding_failure_still_succeeds(self, client, marketplace, marketplace_listing):
        marketplace.responses.append(httpx.Response(503))

        resp = client.post("/quotes/empty-leg", json=self._body(marketplace_listing))

        body = resp.get_json()
        assert resp.status_code == 201
        assert body["forwardedToExternal"] is False
        assert "externalRequestId" not in body
