from datetime import date

import pytest

from ..dataclasses import (
    OUTCOME_ACTIVE, OUTCOME_JOURNEY_COMPLETED, OUTCOME_LOCKED,
    OUTCOME_NO_ACTIVE_RECORD, OUTCOME_NOT_FOUND, OUTCOME_QUEUED,
)
from ..models import DeliveryOrder, FuelRecord
from ..services.candidate_search import (
    find_by_do, find_candidates, lock_reason_text, month_offset, partition_candidates,
)
from .factories import TODAY, make_record, months_ago


def partition(records, **kwargs):
    return partition_candidates("T123ABC", records, TODAY, **kwargs)


class TestMonthOffset:

    def test_same_month(self):
        assert month_offset(date(2025, 3, 1), TODAY) == 0

    def test_across_year_boundary(self):
        assert month_offset(date(2024, 12, 31), date(2025, 1, 2)) == 1

    def test_future_dates_are_negative(self):
        assert month_offset(date(2025, 4, 1), TODAY) == -1


class TestPartition:

    def test_no_records(self):
        result = partition([])
        assert result.outcome == OUTCOME_NOT_FOUND
        assert result.message == "No fuel record found for truck T123 ABC"

    def test_cancelled_and_deleted_records_are_ignored(self):
        result = partition([make_record(is_cancelled=True), make_record(is_deleted=True)])
        assert result.outcome == OUTCOME_NOT_FOUND

    def test_locked_record_bypasses_everything(self):
        active = make_record(journey_status="active", going_do="DO-A")
        locked = make_record(is_locked=True, pending_config_reason="both", going_do="DO-L", date=months_ago(6))

        result = partition([active, locked])

        assert result.outcome == OUTCOME_LOCKED
        assert result.locked is locked
        assert "route total liters and truck batch assignment" in result.message

    def test_active_in_older_month_outranks_queued_in_current_month(self):
        queued = make_record(journey_status="queued", queue_order=1, going_do="DO-Q")
        older_active = make_record(journey_status="active", going_do="DO-A", date=months_ago(2))

        result = partition([queued, older_active])

        assert result.outcome == OUTCOME_ACTIVE
        assert result.active is older_active
        assert result.found_in_month == 2
        assert result.queued == [queued]
        assert result.message == "ACTIVE Journey: DO DO-A, Balance: 900L | 1 queued"

    def test_first_month_with_an_active_record_wins(self):
        recent = make_record(journey_status="active", going_do="DO-NEW", date=months_ago(1))
        old = make_record(journey_status="active", going_do="DO-OLD", date=months_ago(3))

        result = partition([old, recent])

        assert result.active is recent
        assert result.found_in_month == 1

    def test_queued_walk_orders_by_queue_position_within_a_month(self):
        second = make_record(journey_status="queued", queue_order=2, going_do="DO-2", date=date(2025, 3, 1))
        first = make_record(journey_status="queued", queue_order=1, going_do="DO-1", date=date(2025, 3, 2))
        last_month = make_record(journey_status="queued", queue_order=3, going_do="DO-3", date=months_ago(1))

        result = partition([last_month, second, first])

        assert result.outcome == OUTCOME_QUEUED
        assert [r.going_do for r in result.queued] == ["DO-1", "DO-2", "DO-3"]
        assert result.message == "QUEUED Journey (Position #1): DO-1 - Waiting to activate"

    def test_records_outside_the_window_are_not_active_candidates(self):
        stale = make_record(going_do="DO-OLD", balance=450, date=months_ago(4))

        result = partition([stale])

        assert result.outcome == OUTCOME_NO_ACTIVE_RECORD
        assert result.active is None
        assert "last 4 months" in result.message

    def test_completed_most_recent_record(self):
        finished = make_record(journey_status="completed", balance=0, mbeya_return=400, date=months_ago(5))

        result = partition([finished])

        assert result.outcome == OUTCOME_JOURNEY_COMPLETED
        assert result.completed_most_recent is finished
        assert result.is_warning

    def test_mombasa_record_without_tanga_return_is_never_completed(self):
        record = make_record(to="MOMBASA", balance=0, tanga_return=0, date=months_ago(6))
        result = partition([record])
        assert result.outcome == OUTCOME_NO_ACTIVE_RECORD
        assert result.completed_most_recent is None

    def test_window_is_configurable(self):
        older_active = make_record(journey_status="active", date=months_ago(2))
        assert partition([older_active], window_months=2).outcome == OUTCOME_NO_ACTIVE_RECORD
        assert partition([older_active], window_months=3).outcome == OUTCOME_ACTIVE


class TestLockReasonText:

    @pytest.mark.parametrize("reason,text", [
        ("both", "route total liters and truck batch assignment"),
        ("missing_total_liters", "route total liters"),
        ("missing_extra_fuel", "truck batch assignment"),
        (None, "truck batch assignment"),
    ])
    def test_reason_text(self, reason, text):
        assert lock_reason_text(reason) == text


@pytest.mark.django_db
class TestStoreLookups:

    def test_find_candidates_matches_any_truck_spelling(self):
        make_record(truck_no="T123-ABC", journey_status="active").save()
        make_record(truck_no="T123 ABC", journey_status="queued", queue_order=1, going_do="DO-1002").save()
        make_record(truck_no="T999 XYZ", journey_status="active", going_do="DO-9").save()

        result = find_candidates("t123abc", today=TODAY)

        assert result.outcome == OUTCOME_ACTIVE
        assert result.truck_no == "T123 ABC"
        assert result.active.going_do == "DO-1001"
        assert [r.going_do for r in result.queued] == ["DO-1002"]

    def test_find_candidates_skips_cancelled(self):
        make_record(journey_status="active", is_cancelled=True).save()
        assert find_candidates("T123 ABC", today=TODAY).outcome == OUTCOME_NOT_FOUND

    def test_find_by_do_uses_delivery_orders(self):
        DeliveryOrder.objects.create(do_number="do-2001", date=TODAY, truck_no="T123ABC", destination="LUSAKA")
        make_record(journey_status="active", going_do="DO-1001").save()
        make_record(journey_status="queued", queue_order=1, going_do="DO-2001").save()

        result = find_by_do(" DO-2001 ", today=TODAY)

        assert result.do_number == "DO-2001"
        assert result.do_destination == "LUSAKA"
        assert result.outcome == OUTCOME_ACTIVE
        assert result.preferred == 0

    def test_find_by_do_falls_back_to_fuel_records(self):
        make_record(journey_status="active", going_do="DO-1001", return_do="RET-77").save()

        result = find_by_do("ret-77", today=TODAY)

        assert result.truck_no == "T123 ABC"
        assert result.preferred == "active"

    def test_unknown_do(self):
        result = find_by_do("DO-404", today=TODAY)
        assert result.outcome == OUTCOME_NOT_FOUND
        assert result.message == "DO DO-404 not found"
        assert not FuelRecord.objects.exists()
