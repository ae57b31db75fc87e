import pytest
from io import StringIO

from django.core.management import call_command

from ..models import FuelRecord
from ..services.lifecycle import (
    activate_next_queued, complete_and_activate_next, configure_locked_record,
    create_fuel_record, pending_config_reason, reopen_journey,
)
from .factories import TODAY


def new_record(going_do, truck_no="T123 ABC", **overrides):
    fields = dict(
        date=TODAY,
        truck_no=truck_no,
        going_do=going_do,
        start="DAR",
        from_location="DAR",
        to="LUSAKA",
        total_lts=2300,
        extra=60,
    )
    fields.update(overrides)
    return create_fuel_record(**fields)


class TestPendingConfigReason:

    @pytest.mark.parametrize("total,extra,reason", [
        (None, None, "both"),
        (None, 60, "missing_total_liters"),
        (2300, None, "missing_extra_fuel"),
        (2300, 0, None),
    ])
    def test_reason(self, total, extra, reason):
        assert pending_config_reason(total, extra) == reason


@pytest.mark.django_db
class TestQueuePlacement:

    def test_first_record_is_active(self):
        record = new_record("DO-1")

        assert record.journey_status == FuelRecord.STATUS_ACTIVE
        assert record.activated_at is not None
        assert record.balance == 2360
        assert record.original_going_to == "LUSAKA"
        assert record.month == "March 2025"

    def test_later_records_queue_in_order(self):
        new_record("DO-1")
        second = new_record("DO-2", truck_no="T123-ABC")
        third = new_record("DO-3")

        assert (second.journey_status, second.queue_order) == (FuelRecord.STATUS_QUEUED, 1)
        assert (third.journey_status, third.queue_order) == (FuelRecord.STATUS_QUEUED, 2)

    def test_other_trucks_are_independent(self):
        new_record("DO-1")
        other = new_record("DO-9", truck_no="T999 XYZ")
        assert other.journey_status == FuelRecord.STATUS_ACTIVE

    def test_missing_configuration_locks_the_record(self):
        record = new_record("DO-1", total_lts=None, extra=None)

        assert record.is_locked
        assert record.pending_config_reason == "both"
        assert record.balance == 0

    def test_configuring_unlocks_and_recomputes_balance(self):
        record = new_record("DO-1", total_lts=None)
        record.dar_going = 200
        record.save()

        configure_locked_record(record, total_lts=2300)
        record.refresh_from_db()

        assert not record.is_locked
        assert record.pending_config_reason is None
        assert record.balance == 2160

    def test_partial_configuration_stays_locked(self):
        record = new_record("DO-1", total_lts=None, extra=None)
        configure_locked_record(record, total_lts=2300)
        assert record.is_locked
        assert record.pending_config_reason == "missing_extra_fuel"


@pytest.mark.django_db
class TestCompletion:

    @pytest.fixture
    def journeys(self):
        return [new_record(f"DO-{n}") for n in range(1, 4)]

    def test_finished_journey_promotes_the_next_queued(self, journeys):
        first, second, third = journeys
        first.balance = 0
        first.mbeya_return = 400
        first.save()

        promoted = complete_and_activate_next(first)

        first.refresh_from_db()
        third.refresh_from_db()
        assert first.journey_status == FuelRecord.STATUS_COMPLETED
        assert first.completed_at is not None
        assert promoted.pk == second.pk
        assert promoted.journey_status == FuelRecord.STATUS_ACTIVE
        assert promoted.queue_order is None
        assert third.queue_order == 1

    def test_zero_balance_without_terminal_checkpoint_is_not_finished(self, journeys):
        first = journeys[0]
        first.balance = 0
        first.save()

        assert complete_and_activate_next(first) is None
        first.refresh_from_db()
        assert first.journey_status == FuelRecord.STATUS_ACTIVE

    def test_remaining_balance_is_not_finished(self, journeys):
        first = journeys[0]
        first.mbeya_return = 400
        first.save()
        assert complete_and_activate_next(first) is None

    def test_activation_waits_while_truck_has_an_active_journey(self, journeys):
        assert activate_next_queued("T123 ABC") is None

    def test_locked_queued_records_are_skipped(self, journeys):
        first, second, third = journeys
        second.is_locked = True
        second.save()
        first.journey_status = FuelRecord.STATUS_COMPLETED
        first.save()

        promoted = activate_next_queued("T123ABC")

        assert promoted.pk == third.pk

    def test_locked_record_keeps_its_place_when_others_renumber(self, journeys):
        first, locked, next_up = journeys
        last = new_record("DO-4")
        locked.is_locked = True
        locked.save()
        first.journey_status = FuelRecord.STATUS_COMPLETED
        first.save()

        promoted = activate_next_queued("T123 ABC")

        assert promoted.pk == next_up.pk
        queued = FuelRecord.objects.filter(journey_status=FuelRecord.STATUS_QUEUED).order_by("queue_order")
        assert [(r.going_do, r.queue_order) for r in queued] == [("DO-2", 1), ("DO-4", 2)]
        last.refresh_from_db()
        assert last.queue_order == 2


@pytest.mark.django_db
class TestReopenJourney:

    def test_reverted_terminal_fuel_reopens_and_demotes_the_promoted(self):
        first = new_record("DO-1")
        second = new_record("DO-2")
        third = new_record("DO-3")
        first.balance = 0
        first.mbeya_return = 400
        first.save()
        complete_and_activate_next(first)

        first.balance = 400
        first.mbeya_return = 0
        first.save()
        demoted = reopen_journey(first)

        first.refresh_from_db()
        second.refresh_from_db()
        third.refresh_from_db()
        assert demoted.pk == second.pk
        assert (first.journey_status, first.completed_at) == (FuelRecord.STATUS_ACTIVE, None)
        assert (second.journey_status, second.queue_order, second.activated_at) == (FuelRecord.STATUS_QUEUED, 1, None)
        assert third.queue_order == 2

    def test_still_finished_journey_stays_completed(self):
        first = new_record("DO-1")
        first.balance = 0
        first.mbeya_return = 400
        first.save()
        complete_and_activate_next(first)

        assert reopen_journey(first) is None
        first.refresh_from_db()
        assert first.journey_status == FuelRecord.STATUS_COMPLETED

    def test_active_journey_is_left_alone(self):
        first = new_record("DO-1")
        first.balance = 400
        first.save()
        assert reopen_journey(first) is None


@pytest.mark.django_db
class TestActivateQueuedJourneysCommand:

    def test_sweeps_finished_journeys(self):
        first = new_record("DO-1")
        second = new_record("DO-2")
        first.balance = 0
        first.mbeya_return = 400
        first.save()

        out = StringIO()
        call_command("activate_queued_journeys", stdout=out)

        second.refresh_from_db()
        assert second.journey_status == FuelRecord.STATUS_ACTIVE
        assert "Completed 1 journeys, activated 1 queued journeys." in out.getvalue()

    def test_promotes_queue_left_without_active_journey(self):
        first = new_record("DO-1")
        second = new_record("DO-2")
        first.is_cancelled = True
        first.save()

        call_command("activate_queued_journeys", truck="t123abc", stdout=StringIO())

        second.refresh_from_db()
        assert second.journey_status == FuelRecord.STATUS_ACTIVE

    def test_dry_run_changes_nothing(self):
        first = new_record("DO-1")
        new_record("DO-2")
        first.balance = 0
        first.mbeya_return = 400
        first.save()

        out = StringIO()
        call_command("activate_queued_journeys", dry_run=True, stdout=out)

        first.refresh_from_db()
        assert first.journey_status == FuelRecord.STATUS_ACTIVE
        assert "Would complete" in out.getvalue()
