from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class FormulaContext:
    """Variables available to station formulas. None means 'not known'."""
    total_liters: Optional[Decimal] = None
    extra_liters: Optional[Decimal] = None
    balance: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        # Truck not fetched yet: nothing was supplied at all
        return self.total_liters is None and self.extra_liters is None and self.balance is None

    def as_variables(self) -> Dict[str, Optional[Decimal]]:
        """Map onto the names formulas are written with."""
        return {
            "totalLiters": self.total_liters,
            "extraLiters": self.extra_liters,
            "balance": self.balance,
        }


@dataclass
class StationAllocation:
    """Liters/rate suggestion for one station and direction."""
    liters: int
    rate: Decimal
    currency: str
    source: str = ""  # dynamic_formula | dynamic_default | legacy_table | fallback
    formula_status: Optional[str] = None  # applied | missing_data | error
    formula_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StationQuery:
    station: str
    direction: str  # going | returning
    destination: Optional[str] = None
    context: FormulaContext = field(default_factory=FormulaContext)

    @property
    def station_key(self) -> str:
        return (self.station or "").strip().upper()
