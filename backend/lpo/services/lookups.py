"""
Lookup correlation for order rows.

Several truck lookups for one order can be in flight at once and finish in
any order. Each row keeps the correlation id of its latest lookup; a result is
only stored when it carries that id and the row still exists, so a slow
answer for an old truck number never lands on a row that has moved on.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from stations.services.station_rules import StationRuleResolver

from ..dataclasses import LineItem
from .allocation import assemble_line

logger = logging.getLogger(__name__)


@dataclass
class LookupRow:
    row_id: str
    truck_no: str = ""
    do_number: str = ""
    correlation_id: Optional[str] = None
    line: Optional[LineItem] = None
    removed: bool = False


class LookupArena:
    """Rows of one order plus an index from row id to position."""

    def __init__(self):
        self._rows: List[LookupRow] = []
        self._index: Dict[str, int] = {}

    def add_row(self, row_id: Optional[str] = None, truck_no: str = "", do_number: str = "") -> LookupRow:
        row_id = row_id or uuid.uuid4().hex
        if row_id in self._index and not self._rows[self._index[row_id]].removed:
            raise ValueError(f"Row {row_id} already exists")
        row = LookupRow(row_id=row_id, truck_no=truck_no, do_number=do_number)
        self._index[row_id] = len(self._rows)
        self._rows.append(row)
        return row

    def get(self, row_id: str) -> Optional[LookupRow]:
        position = self._index.get(row_id)
        if position is None:
            return None
        row = self._rows[position]
        return None if row.removed else row

    def remove(self, row_id: str) -> None:
        row = self.get(row_id)
        if row is not None:
            row.removed = True
            row.correlation_id = None

    def rows(self) -> List[LookupRow]:
        return [r for r in self._rows if not r.removed]

    def begin(self, row_id: str, truck_no: Optional[str] = None, do_number: Optional[str] = None) -> str:
        """Start a lookup for a row; earlier lookups for the row become stale."""
        row = self.get(row_id)
        if row is None:
            raise KeyError(row_id)
        if truck_no is not None:
            row.truck_no = truck_no
        if do_number is not None:
            row.do_number = do_number
        row.correlation_id = uuid.uuid4().hex
        return row.correlation_id

    def complete(self, row_id: str, correlation_id: str, line: LineItem) -> bool:
        """
        Store a finished lookup.

        Returns:
            bool: False when the result was discarded as stale
        """
        row = self.get(row_id)
        if row is None:
            logger.warning(f"Discarding lookup {correlation_id}: row {row_id} was removed")
            return False
        if row.correlation_id != correlation_id:
            logger.warning(f"Discarding stale lookup {correlation_id} for row {row_id}")
            return False
        row.line = line
        return True

    def lines(self) -> List[LineItem]:
        return [r.line for r in self.rows() if r.line is not None]


def lookup_rows(
    arena: LookupArena,
    station: str,
    direction: str = 'going',
    row_ids: Optional[Iterable[str]] = None,
    today=None,
    resolver=None,
) -> List[LineItem]:
    """Run a lookup for each row (all rows by default) and store the results."""
    resolver = resolver or StationRuleResolver()
    targets = [arena.get(r) for r in row_ids] if row_ids is not None else arena.rows()
    for row in targets:
        if row is None:
            continue
        correlation_id = arena.begin(row.row_id)
        line = assemble_line(
            row.row_id, station, truck_no=row.truck_no, do_number=row.do_number or None,
            direction=direction, today=today, resolver=resolver,
        )
        arena.complete(row.row_id, correlation_id, line)
    return arena.lines()
