"""
Journey lifecycle: queue placement for new records, completion of finished
trips and promotion of the next queued journey.
"""

import logging
from typing import List, Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..models import CHECKPOINT_FIELDS, FuelRecord
from .classification import is_terminal_checkpoint_filled
from .truck_numbers import normalize_truck_no

logger = logging.getLogger(__name__)


def pending_config_reason(total_lts, extra) -> Optional[str]:
    if total_lts is None and extra is None:
        return 'both'
    if total_lts is None:
        return 'missing_total_liters'
    if extra is None:
        return 'missing_extra_fuel'
    return None


def _open_records(truck_no: str):
    return FuelRecord.objects.filter(
        truck_no_normalized=normalize_truck_no(truck_no),
        is_cancelled=False,
        is_deleted=False,
    )


def create_fuel_record(**fields) -> FuelRecord:
    """
    Create a fuel record and place it in the truck's journey queue.

    The record becomes active when the truck has no active journey, otherwise
    it joins the back of the queue. Records missing their route total or extra
    fuel are locked until configured.
    """
    record = FuelRecord(**fields)
    if record.original_going_from is None:
        record.original_going_from = record.from_location
    if record.original_going_to is None:
        record.original_going_to = record.to

    reason = pending_config_reason(record.total_lts, record.extra)
    if reason:
        record.is_locked = True
        record.pending_config_reason = reason
    if 'balance' not in fields and record.total_lts is not None:
        record.balance = record.total_lts + (record.extra or 0)

    with transaction.atomic():
        open_records = list(
            _open_records(record.truck_no)
            .select_for_update()
            .filter(journey_status__in=[FuelRecord.STATUS_ACTIVE, FuelRecord.STATUS_QUEUED])
        )
        has_active = any(r.journey_status == FuelRecord.STATUS_ACTIVE for r in open_records)
        if has_active:
            record.journey_status = FuelRecord.STATUS_QUEUED
            record.queue_order = sum(1 for r in open_records if r.journey_status == FuelRecord.STATUS_QUEUED) + 1
        else:
            record.journey_status = FuelRecord.STATUS_ACTIVE
            record.activated_at = timezone.now()
        record.save()

    if record.is_locked:
        logger.warning(f"Fuel record {record.going_do} for {record.truck_no} created locked ({reason})")
    else:
        logger.info(
            f"Fuel record {record.going_do} for {record.truck_no} created as {record.journey_status}"
            + (f" (position #{record.queue_order})" if record.queue_order else "")
        )
    return record


def configure_locked_record(record: FuelRecord, total_lts: Optional[int] = None, extra: Optional[int] = None) -> FuelRecord:
    """Fill in missing route configuration; the record unlocks once both values are known."""
    if total_lts is not None:
        record.total_lts = total_lts
    if extra is not None:
        record.extra = extra

    reason = pending_config_reason(record.total_lts, record.extra)
    record.pending_config_reason = reason
    if reason is None and record.is_locked:
        record.is_locked = False
        spent = sum((getattr(record, f) or 0) for f in CHECKPOINT_FIELDS)
        record.balance = record.total_lts + record.extra - spent
        logger.info(f"Fuel record {record.going_do} for {record.truck_no} unlocked, balance {record.balance}L")
    record.save()
    return record


def _queued_in_order(records) -> List[FuelRecord]:
    return list(
        records.filter(journey_status=FuelRecord.STATUS_QUEUED)
        .order_by(F('queue_order').asc(nulls_last=True), 'date', 'id')
    )


def _renumber(queued: List[FuelRecord], start: int = 1) -> None:
    for position, record in enumerate(queued, start=start):
        if record.queue_order != position:
            record.queue_order = position
            record.save(update_fields=['queue_order', 'updated_at'])


def activate_next_queued(truck_no: str) -> Optional[FuelRecord]:
    """
    Promote the truck's lowest queued journey to active and renumber the rest.

    Nothing happens while the truck still has an active journey.
    """
    with transaction.atomic():
        records = _open_records(truck_no).select_for_update()
        if records.filter(journey_status=FuelRecord.STATUS_ACTIVE).exists():
            return None

        queued = _queued_in_order(records)
        next_record = next((r for r in queued if not r.is_locked), None)
        if next_record is None:
            return None

        next_record.journey_status = FuelRecord.STATUS_ACTIVE
        next_record.queue_order = None
        next_record.activated_at = timezone.now()
        next_record.save(update_fields=['journey_status', 'queue_order', 'activated_at', 'updated_at'])

        # Locked journeys keep their place in line
        _renumber([r for r in queued if r.pk != next_record.pk])

    logger.info(f"Activated queued journey {next_record.going_do} for truck {next_record.truck_no}")
    return next_record


def complete_and_activate_next(record: FuelRecord) -> Optional[FuelRecord]:
    """
    Close an active journey whose balance is spent and terminal checkpoint filled.

    Returns:
        The newly activated queued record, or None
    """
    if record.is_locked or record.journey_status != FuelRecord.STATUS_ACTIVE:
        return None
    if (record.balance or 0) != 0 or not is_terminal_checkpoint_filled(record):
        return None

    with transaction.atomic():
        record.journey_status = FuelRecord.STATUS_COMPLETED
        record.completed_at = timezone.now()
        record.save(update_fields=['journey_status', 'completed_at', 'updated_at'])
        logger.info(f"Journey {record.going_do} for truck {record.truck_no} completed")
        return activate_next_queued(record.truck_no)


def reopen_journey(record: FuelRecord) -> Optional[FuelRecord]:
    """
    Put a completed journey back to active once it no longer qualifies as finished.

    The journey that was promoted in its place goes back to the front of the queue.

    Returns:
        The demoted journey, or None
    """
    if record.journey_status != FuelRecord.STATUS_COMPLETED:
        return None
    if (record.balance or 0) == 0 and is_terminal_checkpoint_filled(record):
        return None

    with transaction.atomic():
        others = _open_records(record.truck_no).select_for_update().exclude(pk=record.pk)
        promoted = others.filter(journey_status=FuelRecord.STATUS_ACTIVE).order_by('-activated_at', '-id').first()
        queued = _queued_in_order(others)

        if promoted is not None:
            promoted.journey_status = FuelRecord.STATUS_QUEUED
            promoted.queue_order = 1
            promoted.activated_at = None
            promoted.save(update_fields=['journey_status', 'queue_order', 'activated_at', 'updated_at'])
            _renumber(queued, start=2)

        record.journey_status = FuelRecord.STATUS_ACTIVE
        record.completed_at = None
        record.save(update_fields=['journey_status', 'completed_at', 'updated_at'])

    logger.info(
        f"Journey {record.going_do} for truck {record.truck_no} reopened, balance {record.balance}L"
        + (f"; {promoted.going_do} back to queue position #1" if promoted is not None else "")
    )
    return promoted
