"""
Duplicate Allocation Guard

An existing allocation with the same liters for the same truck and station is
treated as accidental double entry and blocks submission. A different amount is
a top-up: allowed, reported for information.
"""

import logging
from typing import Iterable, Optional

from django.conf import settings

from journeys.services.truck_numbers import format_truck_no_display, normalize_truck_no

from ..dataclasses import DuplicateCheck, ExistingAllocation
from ..models import LPOEntry

logger = logging.getLogger(__name__)


def is_cash_station(station: str) -> bool:
    cash_stations = getattr(settings, 'FUEL_CASH_STATIONS', {'CASH'})
    return (station or '').strip().upper() in {s.upper() for s in cash_stations}


def classify_existing(truck_no: str, station: str, new_liters: Optional[int],
                      existing: Iterable[ExistingAllocation]) -> DuplicateCheck:
    """
    Decide between duplicate and top-up for a set of existing allocations.

    Every existing allocation is compared, so the outcome does not depend on
    the order they were found in. Without new liters any existing allocation
    counts as a duplicate.
    """
    existing = list(existing)
    if not existing:
        return DuplicateCheck()

    display_no = format_truck_no_display(truck_no)
    lpo_list = ", ".join(sorted({e.lpo_no for e in existing}))
    station_key = (station or '').strip().upper()

    if new_liters is None or any(e.liters == new_liters for e in existing):
        liters = new_liters if new_liters is not None else existing[0].liters
        return DuplicateCheck(
            has_duplicate=True,
            existing_entries=existing,
            message=f"Truck {display_no} already has {liters}L at {station_key} in LPO {lpo_list}",
        )

    amounts = ", ".join(f"{e.liters}L" for e in existing)
    return DuplicateCheck(
        is_different_amount=True,
        existing_entries=existing,
        message=(f"Top-up: truck {display_no} already has {amounts} at {station_key} "
                 f"(LPO {lpo_list}), new amount {new_liters}L"),
    )


def check_duplicate(
    truck_no: str,
    station: str,
    new_liters: Optional[int] = None,
    do_no: Optional[str] = None,
    exclude_order_id: Optional[int] = None,
) -> DuplicateCheck:
    """
    Look for existing allocations of a truck at a station.

    Args:
        truck_no: Truck number, any spacing
        station: Station name, any case
        new_liters: Liters about to be ordered
        do_no: Narrow the search to this DO when given
        exclude_order_id: Document being edited, left out of the search

    Returns:
        DuplicateCheck: has_duplicate, is_different_amount and the allocations found
    """
    if is_cash_station(station):
        return DuplicateCheck()

    entries = (
        LPOEntry.objects
        .filter(
            truck_no_normalized=normalize_truck_no(truck_no),
            is_cancelled=False,
            document__is_deleted=False,
            document__station__iexact=(station or '').strip(),
        )
        .select_related('document')
        .order_by('document__date', 'id')
    )
    if do_no:
        entries = entries.filter(do_no__iexact=do_no.strip())
    if exclude_order_id is not None:
        entries = entries.exclude(document_id=exclude_order_id)

    existing = [
        ExistingAllocation(
            document_id=e.document_id,
            lpo_no=e.document.lpo_no,
            date=e.document.date,
            station=e.document.station,
            do_no=e.do_no,
            truck_no=e.truck_no,
            liters=e.liters,
        )
        for e in entries
    ]
    result = classify_existing(truck_no, station, new_liters, existing)
    if result.has_duplicate:
        logger.warning(result.message)
    elif result.is_different_amount:
        logger.info(result.message)
    return result
