from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, List, Optional

# Lookup outcomes carried on results instead of being raised
OUTCOME_LOCKED = "locked"
OUTCOME_ACTIVE = "active"
OUTCOME_QUEUED = "queued"
OUTCOME_JOURNEY_COMPLETED = "journey_completed"
OUTCOME_NO_ACTIVE_RECORD = "no_active_record"
OUTCOME_NOT_FOUND = "not_found"

WARNING_OUTCOMES = {OUTCOME_JOURNEY_COMPLETED, OUTCOME_NO_ACTIVE_RECORD, OUTCOME_NOT_FOUND}


class JourneyState:
    LOCKED = "locked"
    ACTIVE = "active"
    QUEUED = "queued"
    # Neither active nor queued; completeness decided by the terminal checkpoint
    CANDIDATE = "candidate"


@dataclass
class JourneyCandidates:
    truck_no: str
    outcome: str
    records: List[Any] = field(default_factory=list)
    locked: Optional[Any] = None
    active: Optional[Any] = None
    queued: List[Any] = field(default_factory=list)
    completed_most_recent: Optional[Any] = None
    # Month offset (0 = current month) where the selected record was found
    found_in_month: Optional[int] = None
    message: str = ""
    # Set by DO-first lookups
    do_number: Optional[str] = None
    do_destination: Optional[str] = None
    preferred: Optional[Any] = None  # 'active' or a queued index

    @property
    def is_warning(self) -> bool:
        return self.outcome in WARNING_OUTCOMES

    @property
    def journey_count(self) -> int:
        return (1 if self.active is not None else 0) + len(self.queued)


@dataclass
class ResolvedJourney:
    """The journey an operator is working with, plus the allocation suggested for it."""
    truck_no: str
    outcome: str
    direction: str = "going"
    record: Optional[Any] = None
    selected: Optional[Any] = None  # 'locked', 'active', 'completed' or a queued index
    do_number: str = ""
    destination: str = ""
    balance: int = 0
    return_do_missing: bool = False
    warning_type: Optional[str] = None
    message: str = ""
    allocation: Optional[Any] = None
    candidates: Optional[JourneyCandidates] = None

    @property
    def is_queued(self) -> bool:
        return isinstance(self.selected, int)

    @property
    def blocks_submission(self) -> bool:
        return self.direction == "returning" and self.return_do_missing

    def copy(self, **changes) -> "ResolvedJourney":
        return replace(self, **changes)
