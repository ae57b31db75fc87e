"""
Journey Selector

Turns journey candidates into the one journey an operator works with, and
keeps the allocation suggestion in step when the operator switches journeys or
flips direction.
"""

import logging
from typing import Optional, Union

from stations.services.station_rules import StationRuleResolver

from ..dataclasses import (
    JourneyCandidates, ResolvedJourney, WARNING_OUTCOMES,
    OUTCOME_JOURNEY_COMPLETED, OUTCOME_LOCKED,
)
from .candidate_search import active_message, completed_message, locked_message, queued_message

logger = logging.getLogger(__name__)

GOING = 'going'
RETURNING = 'returning'

Requested = Union[str, int, None]


class JourneyError(Exception):
    """Raised when a requested journey is not among the candidates"""
    pass


def is_return_do_missing(return_do: Optional[str]) -> bool:
    value = (return_do or '').strip().upper()
    return value in ('', 'NIL')


def _default_choice(candidates: JourneyCandidates):
    if candidates.locked is not None:
        return 'locked', candidates.locked
    if candidates.preferred is not None:
        return _requested_choice(candidates, candidates.preferred)
    if candidates.active is not None:
        return 'active', candidates.active
    if candidates.queued:
        return 0, candidates.queued[0]
    if candidates.outcome == OUTCOME_JOURNEY_COMPLETED and candidates.completed_most_recent is not None:
        return 'completed', candidates.completed_most_recent
    return None, None


def _requested_choice(candidates: JourneyCandidates, requested: Requested):
    if candidates.locked is not None:
        raise JourneyError(f"Truck {candidates.truck_no} has a locked journey pending configuration")
    if requested == 'active':
        if candidates.active is None:
            raise JourneyError(f"Truck {candidates.truck_no} has no active journey")
        return 'active', candidates.active
    try:
        index = int(requested)
    except (TypeError, ValueError):
        raise JourneyError(f"Unknown journey selection: {requested!r}")
    if not 0 <= index < len(candidates.queued):
        raise JourneyError(
            f"Truck {candidates.truck_no} has {len(candidates.queued)} queued journeys, no index {index}"
        )
    return index, candidates.queued[index]


def _message_for(candidates: JourneyCandidates, selected, record) -> str:
    if selected == 'locked':
        return locked_message(record)
    if selected == 'active':
        return active_message(record, len(candidates.queued))
    if selected == 'completed':
        return completed_message(record)
    return queued_message(record, record.queue_order or selected + 1)


def _build(
    candidates: JourneyCandidates,
    selected,
    record,
    direction: str,
    station: Optional[str],
    resolver: Optional[StationRuleResolver],
) -> ResolvedJourney:
    if record is None:
        resolved = ResolvedJourney(
            truck_no=candidates.truck_no,
            outcome=candidates.outcome,
            direction=direction,
            do_number=candidates.do_number or '',
            destination=candidates.do_destination or '',
            warning_type=candidates.outcome if candidates.outcome in WARNING_OUTCOMES else None,
            message=candidates.message,
            candidates=candidates,
        )
        if station:
            resolver = resolver or StationRuleResolver()
            resolved.allocation = resolver.resolve(station, direction, resolved.destination or None)
        return resolved

    going = direction == GOING
    do_number = record.going_do if going else (record.return_do or '')
    destination = record.going_destination if going else (record.to or '')
    balance = 0 if selected == 'completed' else (record.balance or 0)
    return_do_missing = not going and is_return_do_missing(record.return_do)

    if selected == 'completed':
        outcome = OUTCOME_JOURNEY_COMPLETED
    elif selected == 'locked':
        outcome = OUTCOME_LOCKED
    elif selected == 'active':
        outcome = 'active'
    else:
        outcome = 'queued'

    message = _message_for(candidates, selected, record)
    if return_do_missing:
        message += " | Return DO not assigned yet"

    resolved = ResolvedJourney(
        truck_no=candidates.truck_no,
        outcome=outcome,
        direction=direction,
        record=record,
        selected=selected,
        do_number=do_number,
        destination=destination,
        balance=balance,
        return_do_missing=return_do_missing,
        warning_type=outcome if outcome in WARNING_OUTCOMES else None,
        message=message,
        candidates=candidates,
    )
    if station:
        resolver = resolver or StationRuleResolver()
        resolved.allocation = resolver.resolve(
            station,
            direction,
            destination or None,
            total_liters=record.total_lts,
            extra_liters=record.extra,
            balance=balance,
        )
    return resolved


def select(
    candidates: JourneyCandidates,
    requested: Requested = None,
    direction: str = GOING,
    station: Optional[str] = None,
    resolver: Optional[StationRuleResolver] = None,
) -> ResolvedJourney:
    """
    Pick the journey to work with.

    Default order is locked, active, queued (lowest queue position first),
    then the most recent completed journey.

    Args:
        candidates: Result of find_candidates or find_by_do
        requested: 'active' or a queued index to override the default
        direction: 'going' or 'returning'
        station: When given, the allocation for this station is resolved too
        resolver: Station rule resolver to reuse across calls

    Returns:
        ResolvedJourney: Selected record, applicable DO and destination, allocation

    Raises:
        JourneyError: If the requested journey does not exist
    """
    if requested is None:
        selected, record = _default_choice(candidates)
    else:
        selected, record = _requested_choice(candidates, requested)
    logger.debug(f"Selected journey {selected!r} for truck {candidates.truck_no} ({direction})")
    return _build(candidates, selected, record, direction, station, resolver)


def switch_journey(
    resolved: ResolvedJourney,
    requested: Requested,
    station: Optional[str] = None,
    resolver: Optional[StationRuleResolver] = None,
) -> ResolvedJourney:
    """Switch to another of the truck's journeys; warnings from the previous selection are dropped."""
    if resolved.candidates is None:
        raise JourneyError(f"No journeys were looked up for truck {resolved.truck_no}")
    return select(resolved.candidates, requested, resolved.direction, station, resolver)


def toggle_direction(
    resolved: ResolvedJourney,
    station: Optional[str] = None,
    resolver: Optional[StationRuleResolver] = None,
) -> ResolvedJourney:
    direction = RETURNING if resolved.direction == GOING else GOING
    return _build(resolved.candidates, resolved.selected, resolved.record, direction, station, resolver)
