import pytest
from datetime import date

from ..dataclasses import ExistingAllocation
from ..services.duplicate_guard import check_duplicate, classify_existing, is_cash_station
from .factories import make_order


def existing(liters, lpo_no="2445"):
    return ExistingAllocation(
        document_id=1, lpo_no=lpo_no, date=date(2025, 3, 1), station="LAKE CHILABOMBWE",
        do_no="DO-1001", truck_no="T762 DWK", liters=liters,
    )


class TestClassifyExisting:

    def test_nothing_existing(self):
        result = classify_existing("T762DWK", "LAKE CHILABOMBWE", 260, [])
        assert not result.has_duplicate
        assert not result.is_different_amount

    def test_same_liters_is_a_duplicate(self):
        result = classify_existing("T762DWK", "Lake Chilabombwe", 260, [existing(260)])

        assert result.has_duplicate
        assert not result.is_top_up
        assert result.message == "Truck T762 DWK already has 260L at LAKE CHILABOMBWE in LPO 2445"

    def test_different_liters_is_a_top_up(self):
        result = classify_existing("T762DWK", "LAKE CHILABOMBWE", 300, [existing(260)])

        assert result.is_top_up
        assert result.existing_liters == [260]
        assert result.message == (
            "Top-up: truck T762 DWK already has 260L at LAKE CHILABOMBWE (LPO 2445), new amount 300L"
        )

    def test_any_matching_allocation_blocks_regardless_of_order(self):
        first = classify_existing("T762DWK", "LAKE CHILABOMBWE", 260, [existing(300, "2450"), existing(260)])
        second = classify_existing("T762DWK", "LAKE CHILABOMBWE", 260, [existing(260), existing(300, "2450")])

        assert first.has_duplicate and second.has_duplicate
        assert first.message == second.message

    def test_unknown_new_liters_counts_as_duplicate(self):
        assert classify_existing("T762DWK", "LAKE CHILABOMBWE", None, [existing(260)]).has_duplicate


class TestCashStation:

    @pytest.mark.parametrize("station,expected", [("CASH", True), (" cash ", True), ("INFINITY", False), (None, False)])
    def test_is_cash_station(self, station, expected):
        assert is_cash_station(station) is expected


@pytest.mark.django_db
class TestCheckDuplicate:

    @pytest.fixture(autouse=True)
    def order(self):
        return make_order(entries=[("T762 DWK", 260)])

    def test_same_liters_blocked(self):
        result = check_duplicate("t762-dwk", "lake chilabombwe", 260)
        assert result.has_duplicate
        assert result.existing_entries[0].lpo_no == "2445"

    def test_top_up_allowed(self):
        result = check_duplicate("T762DWK", "LAKE CHILABOMBWE", 300)
        assert result.is_top_up

    def test_other_station_is_not_a_duplicate(self):
        assert not check_duplicate("T762DWK", "LAKE NDOLA", 260).has_duplicate

    def test_cash_station_is_exempt(self):
        make_order(lpo_no="2446", station="CASH", entries=[("T762 DWK", 260)])
        assert not check_duplicate("T762DWK", "CASH", 260).has_duplicate

    def test_cancelled_entries_and_deleted_orders_are_ignored(self, order):
        order.entries.update(is_cancelled=True)
        make_order(lpo_no="2447", entries=[("T762 DWK", 260)], is_deleted=True)

        assert not check_duplicate("T762DWK", "LAKE CHILABOMBWE", 260).has_duplicate

    def test_narrowed_by_do(self):
        assert not check_duplicate("T762DWK", "LAKE CHILABOMBWE", 260, do_no="DO-9999").has_duplicate
        assert check_duplicate("T762DWK", "LAKE CHILABOMBWE", 260, do_no="do-1001").has_duplicate

    def test_edited_order_is_excluded(self, order):
        assert not check_duplicate("T762DWK", "LAKE CHILABOMBWE", 260, exclude_order_id=order.id).has_duplicate
