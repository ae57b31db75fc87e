"""
Allocation assembler: turns a truck (or DO) typed into an order row into a
line item carrying the resolved journey, the suggested liters and rate, and
any duplicate or top-up notice.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from journeys.services.candidate_search import find_by_do, find_candidates
from journeys.services.selector import select, switch_journey, toggle_direction
from stations.services.destinations import station_currency
from stations.services.station_rules import StationRuleResolver

from ..dataclasses import LineItem
from .duplicate_guard import check_duplicate

logger = logging.getLogger(__name__)


def _line_from_journey(row_id: str, station: str, resolved, check_duplicates: bool = True) -> LineItem:
    allocation = resolved.allocation
    line = LineItem(
        row_id=row_id,
        truck_no=resolved.truck_no,
        station=(station or '').strip().upper(),
        direction=resolved.direction,
        do_no=resolved.do_number,
        dest=resolved.destination,
        liters=allocation.liters if allocation else 0,
        rate=allocation.rate if allocation else Decimal("0"),
        currency=allocation.currency if allocation else station_currency(station),
        return_do_missing=resolved.return_do_missing,
        warning_type=resolved.warning_type,
        message=resolved.message,
        formula_status=allocation.formula_status if allocation else None,
        formula_message=allocation.formula_message if allocation else None,
        journey=resolved,
    )
    if check_duplicates and line.truck_no:
        line.duplicate = check_duplicate(line.truck_no, station, line.liters, line.do_no or None)
    return line


def assemble_line(
    row_id: str,
    station: str,
    truck_no: Optional[str] = None,
    do_number: Optional[str] = None,
    direction: str = 'going',
    requested=None,
    today: Optional[date] = None,
    resolver: Optional[StationRuleResolver] = None,
) -> LineItem:
    """
    Build an order line for a truck number or, DO-first, a DO number.

    Args:
        row_id: Identity of the order row the lookup was issued for
        station: Station the order is for
        truck_no: Truck number typed into the row
        do_number: DO number, used instead of the truck number when given
        direction: 'going' or 'returning'
        requested: 'active' or a queued index to override the default journey
        today: Anchor date for the month window
        resolver: Station rule resolver shared across the rows of one order

    Returns:
        LineItem: Resolved journey, suggested liters and rate, duplicate notice
    """
    if do_number:
        candidates = find_by_do(do_number, today)
    else:
        candidates = find_candidates(truck_no or '', today)

    resolver = resolver or StationRuleResolver()
    resolved = select(candidates, requested, direction, station, resolver)
    line = _line_from_journey(row_id, station, resolved)
    logger.debug(f"Row {row_id}: {line.truck_no} {line.direction} -> {line.liters}L @ {line.rate} ({resolved.outcome})")
    return line


def switch_line_journey(line: LineItem, requested, resolver: Optional[StationRuleResolver] = None) -> LineItem:
    """Point a line at another of the truck's journeys and recompute its allocation."""
    resolved = switch_journey(line.journey, requested, line.station, resolver or StationRuleResolver())
    return _line_from_journey(line.row_id, line.station, resolved)


def toggle_line_direction(line: LineItem, resolver: Optional[StationRuleResolver] = None) -> LineItem:
    resolved = toggle_direction(line.journey, line.station, resolver or StationRuleResolver())
    return _line_from_journey(line.row_id, line.station, resolved)
