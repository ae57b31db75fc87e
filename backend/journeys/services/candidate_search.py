"""
Journey Candidate Search

Finds which of a truck's fuel records is its current journey. Records are
walked over a rolling window of calendar months, newest month first; an active
record anywhere in the window outranks a queued one, and only when neither
exists does the search fall back to the most recent record of any age.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from ..dataclasses import (
    JourneyCandidates, JourneyState,
    OUTCOME_ACTIVE, OUTCOME_JOURNEY_COMPLETED, OUTCOME_LOCKED,
    OUTCOME_NO_ACTIVE_RECORD, OUTCOME_NOT_FOUND, OUTCOME_QUEUED,
)
from ..models import DeliveryOrder, FuelRecord
from .classification import classify, is_journey_complete
from .truck_numbers import format_truck_no_display, normalize_truck_no

logger = logging.getLogger(__name__)

LOCK_REASON_TEXT = {
    'both': "route total liters and truck batch assignment",
    'missing_total_liters': "route total liters",
}


def lock_reason_text(reason: Optional[str]) -> str:
    return LOCK_REASON_TEXT.get(reason, "truck batch assignment")


def search_window_months() -> int:
    return int(getattr(settings, 'FUEL_SEARCH_WINDOW_MONTHS', 4))


def month_offset(record_date: date, today: date) -> int:
    """How many calendar months record_date lies before today's month (negative if after)."""
    return (today.year - record_date.year) * 12 + (today.month - record_date.month)


def _queue_key(record):
    # Records without a queue position go last
    return (record.queue_order is None, record.queue_order or 0)


def active_message(record, queued_count: int = 0) -> str:
    message = f"ACTIVE Journey: DO {record.going_do}, Balance: {record.balance}L"
    if queued_count:
        message += f" | {queued_count} queued"
    return message


def queued_message(record, position: int) -> str:
    return f"QUEUED Journey (Position #{position}): {record.going_do} - Waiting to activate"


def locked_message(record) -> str:
    return (
        f"LOCKED Journey: DO {record.going_do} is pending "
        f"{lock_reason_text(record.pending_config_reason)} configuration"
    )


def completed_message(record) -> str:
    return f"Journey completed: DO {record.going_do} has finished its return trip"


def partition_candidates(
    truck_no: str,
    records: Iterable,
    today: date,
    window_months: Optional[int] = None,
) -> JourneyCandidates:
    """
    Sort a truck's fuel records into active, queued and completed candidates.

    Args:
        truck_no: Truck number the records were fetched for
        records: Fuel records for that truck; cancelled and deleted ones are ignored
        today: Anchor date for the month window
        window_months: Months to search, current month included

    Returns:
        JourneyCandidates: Outcome, selected candidates and an operator message
    """
    window = window_months if window_months is not None else search_window_months()
    display_no = format_truck_no_display(truck_no)

    ordered = sorted(
        (r for r in records if not r.is_cancelled and not r.is_deleted),
        key=lambda r: (r.date, r.pk or 0),
        reverse=True,
    )
    if not ordered:
        return JourneyCandidates(
            truck_no=display_no, outcome=OUTCOME_NOT_FOUND,
            message=f"No fuel record found for truck {display_no}",
        )

    states = {id(r): classify(r) for r in ordered}
    completed_most_recent = next((r for r in ordered if is_journey_complete(r)), None)

    locked = next((r for r in ordered if states[id(r)] == JourneyState.LOCKED), None)
    if locked is not None:
        logger.info(f"Truck {display_no} has a locked journey (DO {locked.going_do}), skipping disambiguation")
        return JourneyCandidates(
            truck_no=display_no, outcome=OUTCOME_LOCKED, records=ordered, locked=locked,
            completed_most_recent=completed_most_recent, message=locked_message(locked),
        )

    by_month: List[List] = [[] for _ in range(window)]
    for record in ordered:
        offset = month_offset(record.date, today)
        if 0 <= offset < window:
            by_month[offset].append(record)

    queued: List = []
    queued_month = None
    for offset, month_records in enumerate(by_month):
        in_month = sorted((r for r in month_records if states[id(r)] == JourneyState.QUEUED), key=_queue_key)
        if in_month and queued_month is None:
            queued_month = offset
        queued.extend(in_month)

    for offset, month_records in enumerate(by_month):
        active = next((r for r in month_records if states[id(r)] == JourneyState.ACTIVE), None)
        if active is not None:
            return JourneyCandidates(
                truck_no=display_no, outcome=OUTCOME_ACTIVE, records=ordered, active=active,
                queued=queued, completed_most_recent=completed_most_recent, found_in_month=offset,
                message=active_message(active, len(queued)),
            )

    if queued:
        first = queued[0]
        return JourneyCandidates(
            truck_no=display_no, outcome=OUTCOME_QUEUED, records=ordered, queued=queued,
            completed_most_recent=completed_most_recent, found_in_month=queued_month,
            message=queued_message(first, first.queue_order or 1),
        )

    most_recent = ordered[0]
    if is_journey_complete(most_recent):
        return JourneyCandidates(
            truck_no=display_no, outcome=OUTCOME_JOURNEY_COMPLETED, records=ordered,
            completed_most_recent=most_recent, found_in_month=month_offset(most_recent.date, today),
            message=completed_message(most_recent),
        )

    logger.warning(f"Truck {display_no} has records but none active or queued in the last {window} months")
    return JourneyCandidates(
        truck_no=display_no, outcome=OUTCOME_NO_ACTIVE_RECORD, records=ordered,
        completed_most_recent=completed_most_recent,
        message=f"No active journey for truck {display_no} in the last {window} months",
    )


def fetch_truck_records(truck_no: str, limit: Optional[int] = None) -> List[FuelRecord]:
    limit = limit or int(getattr(settings, 'FUEL_RECORD_LOOKUP_LIMIT', 50))
    return list(
        FuelRecord.objects.filter(
            truck_no_normalized=normalize_truck_no(truck_no),
            is_cancelled=False,
            is_deleted=False,
        ).order_by('-date', '-id')[:limit]
    )


def find_candidates(truck_no: str, today: Optional[date] = None, limit: Optional[int] = None) -> JourneyCandidates:
    """Fetch a truck's fuel records and sort them into journey candidates."""
    today = today or timezone.localdate()
    records = fetch_truck_records(truck_no, limit)
    logger.debug(f"Fetched {len(records)} fuel records for truck {truck_no}")
    return partition_candidates(truck_no, records, today)


def _carries_do(record, do_number: str) -> bool:
    return do_number in {
        (record.going_do or '').strip().upper(),
        (record.return_do or '').strip().upper(),
    }


def find_by_do(do_number: str, today: Optional[date] = None) -> JourneyCandidates:
    """
    DO-first lookup: map a DO to its truck, then search that truck's journeys.

    When the journey carrying the DO is among the active or queued candidates
    it becomes the preferred selection.
    """
    do_key = (do_number or '').strip().upper()
    truck_no = None
    destination = None

    order = DeliveryOrder.objects.filter(do_number=do_key, is_cancelled=False).first()
    if order is not None:
        truck_no, destination = order.truck_no, order.destination
    else:
        record = FuelRecord.objects.filter(
            Q(going_do__iexact=do_key) | Q(return_do__iexact=do_key),
            is_cancelled=False, is_deleted=False,
        ).order_by('-date', '-id').first()
        if record is not None:
            truck_no, destination = record.truck_no, record.to

    if not truck_no:
        logger.warning(f"DO {do_key} not found in delivery orders or fuel records")
        return JourneyCandidates(
            truck_no='', outcome=OUTCOME_NOT_FOUND, do_number=do_key,
            message=f"DO {do_key} not found",
        )

    candidates = find_candidates(truck_no, today)
    candidates.do_number = do_key
    candidates.do_destination = destination

    if candidates.active is not None and _carries_do(candidates.active, do_key):
        candidates.preferred = 'active'
    else:
        for index, record in enumerate(candidates.queued):
            if _carries_do(record, do_key):
                candidates.preferred = index
                break
    return candidates
