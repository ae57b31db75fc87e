"""
Order submission, checkpoint posting and single-entry cancellation.
"""

import logging
from collections import Counter
from datetime import date
from typing import Iterable, List, Optional, Tuple

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from journeys.models import FuelRecord
from journeys.services.candidate_search import find_candidates
from journeys.services.classification import is_journey_complete
from journeys.services.lifecycle import complete_and_activate_next, reopen_journey
from journeys.services.selector import is_return_do_missing
from journeys.services.truck_numbers import format_truck_no_display, normalize_truck_no
from stations.services.checkpoints import checkpoint_field_for
from stations.services.destinations import station_currency

from ..dataclasses import (
    BlockingIssue, CancellationOutcome, CancellationRequest, CheckpointMatch, OrderLine, SubmissionResult,
)
from ..models import CancellationPoint, LPODocument, LPOEntry
from .duplicate_guard import check_duplicate, is_cash_station

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Cash mode payment - station was out of fuel"


class LPOError(Exception):
    """Base exception for purchase order operations"""
    pass


class OrderBlockedError(LPOError):
    """Raised when one or more lines must be fixed before the order can be issued"""

    def __init__(self, issues: List[BlockingIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


class EntryNotFoundError(LPOError):
    """Raised when the document or the truck's active entry does not exist"""
    pass


def next_lpo_number() -> str:
    """One past the highest numeric LPO number in use."""
    start = int(getattr(settings, 'FUEL_LPO_START_NUMBER', 2445))
    numbers = [int(n) for n in LPODocument.objects.values_list('lpo_no', flat=True) if n.isdigit()]
    candidate = max(numbers) + 1 if numbers else start
    while LPODocument.objects.filter(lpo_no=str(candidate)).exists():
        candidate += 1
    return str(candidate)


def find_blocking_issues(station: str, lines: Iterable[OrderLine],
                         exclude_order_id: Optional[int] = None) -> Tuple[List[BlockingIssue], List[str]]:
    """
    Check every line against persisted allocations and against the other lines.

    Returns:
        (issues, notices): blocking issues, and top-up notices that do not block
    """
    lines = list(lines)
    issues: List[BlockingIssue] = []
    notices: List[str] = []

    counts = Counter(normalize_truck_no(line.truck_no) for line in lines)
    reported = set()
    for row, line in enumerate(lines):
        key = normalize_truck_no(line.truck_no)
        display_no = format_truck_no_display(line.truck_no)

        if counts[key] > 1 and key not in reported:
            reported.add(key)
            issues.append(BlockingIssue(
                truck_no=display_no, kind='repeated_truck', row=row,
                message=f"Truck {display_no} appears {counts[key]} times in this order",
            ))

        if line.direction == 'returning' and (line.return_do_missing or is_return_do_missing(line.do_no)):
            issues.append(BlockingIssue(
                truck_no=display_no, kind='return_do_missing', row=row,
                message=f"Truck {display_no} has no return DO; enter it before ordering returning fuel",
            ))

        if is_cash_station(station):
            continue
        check = check_duplicate(line.truck_no, station, line.liters, line.do_no or None, exclude_order_id)
        if check.has_duplicate:
            issues.append(BlockingIssue(truck_no=display_no, kind='duplicate', row=row, message=check.message))
        elif check.is_different_amount:
            notices.append(check.message)

    return issues, notices


def _fuel_record_for_entry(entry: LPOEntry) -> Tuple[Optional[FuelRecord], str]:
    """The journey an entry's liters belong to: by DO first, then the truck's current journey."""
    do_no = (entry.do_no or '').strip()
    if do_no:
        base = FuelRecord.objects.filter(is_cancelled=False, is_deleted=False).order_by('-date', '-id')
        record = base.filter(going_do__iexact=do_no).first()
        if record is not None:
            return record, 'going'
        record = base.filter(return_do__iexact=do_no).first()
        if record is not None:
            return record, 'returning'

    candidates = find_candidates(entry.truck_no)
    record = candidates.locked or candidates.active or (candidates.queued[0] if candidates.queued else None)
    return record, entry.direction


def post_entry(entry: LPOEntry, station: str) -> Optional[FuelRecord]:
    """
    Add an entry's liters to its journey's checkpoint column and take them off the balance.

    Entries whose journey is finished or whose station has no column are left unposted.
    """
    record, direction = _fuel_record_for_entry(entry)
    if record is None:
        logger.warning(f"No fuel record found for DO {entry.do_no} or truck {entry.truck_no}, liters not posted")
        return None
    if is_journey_complete(record):
        logger.warning(f"Journey {record.going_do} for truck {entry.truck_no} is complete, liters not posted")
        return None

    column = checkpoint_field_for(station, direction)
    if column is None:
        return None

    FuelRecord.objects.filter(pk=record.pk).update(**{
        column: Coalesce(F(column), Value(0)) + entry.liters,
        'balance': F('balance') - entry.liters,
        'updated_at': timezone.now(),
    })
    record.refresh_from_db()
    entry.fuel_record = record
    entry.posted_field = column
    entry.save(update_fields=['fuel_record', 'posted_field'])
    logger.info(f"Posted {entry.liters}L for {entry.truck_no} to {column} on {record.going_do}, balance {record.balance}L")

    complete_and_activate_next(record)
    return record


def revert_entry(entry: LPOEntry) -> None:
    """Give an entry's liters back to its journey, reopening the journey if it no longer counts as finished."""
    if not entry.fuel_record_id or not entry.posted_field:
        return
    column = entry.posted_field
    FuelRecord.objects.filter(pk=entry.fuel_record_id).update(**{
        column: Coalesce(F(column), Value(0)) - entry.liters,
        'balance': F('balance') + entry.liters,
        'updated_at': timezone.now(),
    })
    logger.info(f"Reverted {entry.liters}L for {entry.truck_no} from {column}")

    reopen_journey(FuelRecord.objects.get(pk=entry.fuel_record_id))


def _apply_cancellation(request: CancellationRequest) -> CancellationOutcome:
    # Each cancellation runs in its own savepoint
    try:
        cancelled = cancel_truck_entry(
            request.document_id, request.truck_no, request.cancellation_point, request.reason,
        )
    except LPOError as e:
        logger.error(f"Cancellation of {request.truck_no} in document {request.document_id} failed: {e}")
        return CancellationOutcome(
            document_id=request.document_id, truck_no=request.truck_no, ok=False, message=str(e),
        )
    except DatabaseError as e:
        logger.exception(f"Cancellation of {request.truck_no} in document {request.document_id} failed")
        return CancellationOutcome(
            document_id=request.document_id, truck_no=request.truck_no, ok=False, message=str(e),
        )
    return CancellationOutcome(
        document_id=request.document_id, truck_no=request.truck_no, ok=True,
        message=f"Cancelled truck {request.truck_no} in LPO {cancelled.lpo_no}",
    )


def submit_order(
    station: str,
    lines: Iterable[OrderLine],
    order_date: Optional[date] = None,
    order_of: str = '',
    lpo_no: Optional[str] = None,
    cancellations: Iterable[CancellationRequest] = (),
    user=None,
) -> SubmissionResult:
    """
    Issue a purchase order.

    Duplicates, returning lines without a return DO and trucks listed twice
    block the order. Requested cancellations run once the document exists and
    before its liters are posted, so fuel bought in cash replaces the cancelled
    allocation on the same journey. A failed cancellation is reported in the
    result and does not undo the order.

    Raises:
        OrderBlockedError: If any line must be fixed first
        LPOError: If the order has no lines or the LPO number is taken
    """
    lines = list(lines)
    if not lines:
        raise LPOError("An order needs at least one truck")

    issues, notices = find_blocking_issues(station, lines)
    if issues:
        logger.warning(f"Order at {station} blocked: {len(issues)} issue(s)")
        raise OrderBlockedError(issues)

    station_name = station.strip().upper()
    with transaction.atomic():
        number = lpo_no or next_lpo_number()
        if LPODocument.objects.filter(lpo_no=number).exists():
            raise LPOError(f"LPO {number} already exists")

        try:
            document = LPODocument.objects.create(
                lpo_no=number,
                date=order_date or timezone.localdate(),
                station=station_name,
                order_of=order_of,
                currency=station_currency(station_name),
                created_by=user if user is not None and user.is_authenticated else None,
            )
        except IntegrityError as e:
            # Another order took the number between the check and the insert
            raise LPOError(f"LPO {number} already exists") from e

        entries = [
            LPOEntry.objects.create(
                document=document,
                do_no=line.do_no,
                truck_no=format_truck_no_display(line.truck_no),
                liters=line.liters,
                rate=line.rate,
                dest=line.dest,
                direction=line.direction,
            )
            for line in lines
        ]
        logger.info(f"Created LPO {document.lpo_no} at {station_name} with {len(lines)} truck(s)")

        outcomes = [_apply_cancellation(request) for request in cancellations]

        for entry in entries:
            post_entry(entry, station_name)

        document.recalculate_total()
        document.save(update_fields=['total', 'updated_at'])

    logger.info(f"LPO {document.lpo_no} total {document.total}")
    return SubmissionResult(document=document, notices=notices, cancellations=outcomes)


def cancel_truck_entry(document_id: int, truck_no: str, cancellation_point: str,
                       reason: Optional[str] = None) -> LPODocument:
    """
    Cancel one truck's entry within an order and give its liters back to the journey.

    Raises:
        EntryNotFoundError: If the document or an active entry for the truck is missing
        LPOError: If the cancellation point is not recognised
    """
    if cancellation_point not in CancellationPoint.values:
        raise LPOError(f"Unknown cancellation point: {cancellation_point}")

    with transaction.atomic():
        document = LPODocument.objects.select_for_update().filter(pk=document_id, is_deleted=False).first()
        if document is None:
            raise EntryNotFoundError(f"LPO document {document_id} not found")

        entry = document.entries.filter(
            truck_no_normalized=normalize_truck_no(truck_no), is_cancelled=False,
        ).first()
        if entry is None:
            raise EntryNotFoundError(f"Active entry for truck {truck_no} not found in LPO {document.lpo_no}")

        revert_entry(entry)
        entry.is_cancelled = True
        entry.cancellation_point = cancellation_point
        entry.cancellation_reason = reason or DEFAULT_CANCELLATION_REASON
        entry.cancelled_at = timezone.now()
        entry.save(update_fields=['is_cancelled', 'cancellation_point', 'cancellation_reason', 'cancelled_at'])

        document.recalculate_total()
        document.save(update_fields=['total', 'updated_at'])

    logger.info(f"Truck {truck_no} cancelled in LPO {document.lpo_no} at {cancellation_point}")
    return document


def find_at_checkpoint(truck_no: str, station: Optional[str] = None) -> List[CheckpointMatch]:
    """Documents holding an active entry for the truck, optionally at one station."""
    key = normalize_truck_no(truck_no)
    documents = LPODocument.objects.filter(
        is_deleted=False, entries__truck_no_normalized=key, entries__is_cancelled=False,
    )
    if station:
        documents = documents.filter(station__iexact=station.strip())

    matches = []
    for document in documents.distinct().order_by('-date', '-id'):
        entries = list(document.entries.filter(truck_no_normalized=key, is_cancelled=False))
        if entries:
            matches.append(CheckpointMatch(document=document, entries=entries))
    return matches
