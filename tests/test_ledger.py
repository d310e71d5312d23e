from datetime import timedelta

import pytest

from models import db
from models.listing import ClosedReason, ListingStatus
from services.errors import InsufficientInventory, NotBookable, NotFound, ValidationError
from services.ledger import reserve, restore, withdraw_listing
from utils.clock import utcnow


def _reload(listing):
    db.session.commit()
    db.session.refresh(listing)
    return listing


class TestReserve:
    def test_decrements_available_seats(self, make_listing):
        listing = make_listing(total_seats=8)

        reserve(listing.id, 3)

        listing = _reload(listing)
        assert listing.available_seats == 5
        assert listing.status == ListingStatus.PUBLISHED

    def test_selling_out_closes_listing(self, make_listing):
        listing = make_listing(total_seats=2)

        reserve(listing.id, 2)

        listing = _reload(listing)
        assert listing.available_seats == 0
        assert listing.status == ListingStatus.CLOSED
        assert listing.closed_reason == ClosedReason.SOLD_OUT

    def test_not_enough_seats(self, make_listing):
        listing = make_listing(total_seats=4, available_seats=2)

        with pytest.raises(InsufficientInventory, match="Only 2 seats available"):
            reserve(listing.id, 3)

        assert _reload(listing).available_seats == 2

    def test_unbookable_listing(self, make_listing):
        listing = make_listing(status=ListingStatus.UNAVAILABLE)

        with pytest.raises(NotBookable):
            reserve(listing.id, 1)

        assert _reload(listing).available_seats == 8

    def test_departed_listing_is_not_bookable(self, make_listing):
        listing = make_listing(departure_at=utcnow() - timedelta(minutes=5))

        with pytest.raises(NotBookable, match="no longer available"):
            reserve(listing.id, 1)

        listing = _reload(listing)
        assert listing.available_seats == 8
        assert listing.status == ListingStatus.PUBLISHED

    def test_unknown_listing(self, app):
        with pytest.raises(NotFound):
            reserve(9999, 1)

    def test_rejects_non_positive_seats(self, make_listing):
        listing = make_listing()

        with pytest.raises(ValidationError):
            reserve(listing.id, 0)


class TestRestore:
    def test_increments_available_seats(self, make_listing):
        listing = make_listing(total_seats=8, available_seats=3)

        restore(listing.id, 2)

        assert _reload(listing).available_seats == 5

    def test_never_exceeds_total_seats(self, make_listing):
        listing = make_listing(total_seats=4, available_seats=3)

        restore(listing.id, 2)

        assert _reload(listing).available_seats == 4

    def test_sold_out_listing_goes_back_on_sale(self, make_listing):
        listing = make_listing(total_seats=2)
        reserve(listing.id, 2)
        db.session.commit()

        restore(listing.id, 2)

        listing = _reload(listing)
        assert listing.available_seats == 2
        assert listing.status == ListingStatus.PUBLISHED
        assert listing.closed_reason is None

    def test_departed_listing_stays_closed(self, make_listing):
        listing = make_listing(
            total_seats=2,
            available_seats=0,
            status=ListingStatus.CLOSED,
            departure_at=utcnow() - timedelta(hours=1),
        )

        restore(listing.id, 2)

        listing = _reload(listing)
        assert listing.available_seats == 2
        assert listing.status == ListingStatus.CLOSED

    @pytest.mark.parametrize("reason", [ClosedReason.WITHDRAWN, ClosedReason.DEPARTED, None])
    def test_only_sold_out_listings_reopen(self, make_listing, reason):
        listing = make_listing(total_seats=2, available_seats=0, status=ListingStatus.CLOSED, closed_reason=reason)

        restore(listing.id, 2)

        listing = _reload(listing)
        assert listing.available_seats == 2
        assert listing.status == ListingStatus.CLOSED
        assert listing.closed_reason == reason

    def test_unknown_listing(self, app):
        with pytest.raises(NotFound):
            restore(9999, 1)


class TestWithdraw:
    def test_closes_listing_as_withdrawn(self, make_listing):
        listing = make_listing()

        withdraw_listing(listing.id)

        listing = _reload(listing)
        assert listing.status == ListingStatus.CLOSED
        assert listing.closed_reason == ClosedReason.WITHDRAWN

    def test_withdrawn_after_selling_out_stays_closed(self, make_listing):
        listing = make_listing(total_seats=2)
        reserve(listing.id, 2)
        db.session.commit()
        withdraw_listing(listing.id)

        restore(listing.id, 2)

        listing = _reload(listing)
        assert listing.status == ListingStatus.CLOSED
        assert listing.closed_reason == ClosedReason.WITHDRAWN

    def test_unknown_listing(self, app):
        with pytest.raises(NotFound):
            withdraw_listing(9999)
