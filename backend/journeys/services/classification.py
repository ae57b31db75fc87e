"""
Journey state classification.

Legacy records carry no journey_status, so their state is inferred from the
balance and the terminal return checkpoint. All of that lives here so the rest
of the engine asks one question: classify(record).
"""

from stations.services.destinations import is_mombasa_destination

from ..dataclasses import JourneyState

STATUS_ACTIVE = "active"
STATUS_QUEUED = "queued"


def terminal_checkpoint(record) -> str:
    """
    Name of the checkpoint that closes the round trip.

    Trucks serving Mombasa come back through Tanga; everyone else is done
    once fuelled at Mbeya on the way back.
    """
    if is_mombasa_destination(record.to) or is_mombasa_destination(record.original_going_to):
        return "tanga_return"
    return "mbeya_return"


def is_terminal_checkpoint_filled(record) -> bool:
    value = getattr(record, terminal_checkpoint(record), None)
    return value is not None and value != 0


def is_journey_complete(record) -> bool:
    """
    A finished trip has its terminal return checkpoint filled.

    A zero balance alone proves nothing: a fresh import with every checkpoint
    at 0 also has balance 0. Locked records are never complete.
    """
    if record.is_locked:
        return False
    if record.journey_status in (STATUS_ACTIVE, STATUS_QUEUED):
        return False
    return is_terminal_checkpoint_filled(record)


def classify(record) -> str:
    """
    Classify a fuel record.

    Precedence: locked, explicit status, then inference for legacy records
    (non-zero balance or unfilled terminal checkpoint means still running).

    Returns:
        str: One of the JourneyState values
    """
    if record.is_locked:
        return JourneyState.LOCKED
    if record.journey_status == STATUS_ACTIVE:
        return JourneyState.ACTIVE
    if record.journey_status == STATUS_QUEUED:
        return JourneyState.QUEUED
    if record.journey_status:
        return JourneyState.CANDIDATE

    if (record.balance or 0) != 0:
        return JourneyState.ACTIVE
    if not is_terminal_checkpoint_filled(record):
        return JourneyState.ACTIVE
    return JourneyState.CANDIDATE
