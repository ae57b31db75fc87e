from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional


@dataclass
class ExistingAllocation:
    document_id: int
    lpo_no: str
    date: date
    station: str
    do_no: str
    truck_no: str
    liters: int


@dataclass
class DuplicateCheck:
    has_duplicate: bool = False
    is_different_amount: bool = False
    existing_entries: List[ExistingAllocation] = field(default_factory=list)
    message: str = ""

    @property
    def existing_liters(self) -> List[int]:
        return [e.liters for e in self.existing_entries]

    @property
    def is_top_up(self) -> bool:
        return self.is_different_amount and not self.has_duplicate


@dataclass
class OrderLine:
    truck_no: str
    do_no: str
    liters: int
    rate: Decimal
    dest: str = ""
    direction: str = "going"
    return_do_missing: bool = False


@dataclass
class LineItem:
    """One truck row of an order being prepared, with its journey and suggestion."""
    row_id: str
    truck_no: str
    station: str
    direction: str = "going"
    do_no: str = ""
    dest: str = ""
    liters: int = 0
    rate: Decimal = Decimal("0")
    currency: str = "TZS"
    return_do_missing: bool = False
    warning_type: Optional[str] = None
    message: str = ""
    formula_status: Optional[str] = None
    formula_message: Optional[str] = None
    duplicate: Optional[DuplicateCheck] = None
    journey: Optional[Any] = None  # ResolvedJourney

    @property
    def amount(self) -> Decimal:
        return Decimal(self.liters) * self.rate

    def to_order_line(self) -> OrderLine:
        return OrderLine(
            truck_no=self.truck_no, do_no=self.do_no, liters=self.liters, rate=self.rate,
            dest=self.dest, direction=self.direction, return_do_missing=self.return_do_missing,
        )


@dataclass
class BlockingIssue:
    truck_no: str
    kind: str  # duplicate | return_do_missing | repeated_truck
    message: str
    row: Optional[int] = None


@dataclass
class CancellationRequest:
    document_id: int
    truck_no: str
    cancellation_point: str
    reason: Optional[str] = None


@dataclass
class CancellationOutcome:
    document_id: int
    truck_no: str
    ok: bool
    message: str = ""


@dataclass
class SubmissionResult:
    document: Any
    notices: List[str] = field(default_factory=list)
    cancellations: List[CancellationOutcome] = field(default_factory=list)

    @property
    def failed_cancellations(self) -> List[CancellationOutcome]:
        return [c for c in self.cancellations if not c.ok]


@dataclass
class CheckpointMatch:
    document: Any
    entries: List[Any] = field(default_factory=list)
