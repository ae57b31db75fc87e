"""
Station Rule Resolver

Works out how many liters, at what rate, a truck should receive at a station
for a given direction. Rule sources are consulted in order and the first one
that knows the station answers:

1. Dynamic station configs (admin-managed, may carry formulas)
2. The legacy station table kept for stations not yet configured
3. A conservative fallback for stations nobody knows about
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.conf import settings

from ..dataclasses import FormulaContext, StationAllocation, StationQuery
from .destinations import is_mombasa_destination, is_zambia_station, station_currency
from .formula import FormulaEvaluationError, MissingDataError, evaluate_formula

logger = logging.getLogger(__name__)

DIRECTIONS = ('going', 'returning')

FORMULA_APPLIED = 'applied'
FORMULA_MISSING_DATA = 'missing_data'
FORMULA_ERROR = 'error'

# Station name -> (going liters, returning liters, rate)
LEGACY_STATION_TABLE: Dict[str, tuple] = {
    # Zambia leg, priced in USD
    'LAKE CHILABOMBWE': (260, 0, Decimal('1.2')),
    'LAKE NDOLA': (0, 50, Decimal('1.2')),
    'LAKE KAPIRI': (0, 350, Decimal('1.2')),
    'LAKE KITWE': (260, 0, Decimal('1.2')),
    'LAKE KABANGWA': (260, 0, Decimal('1.2')),
    'LAKE CHINGOLA': (260, 0, Decimal('1.2')),
    # Tanzania leg, priced in TZS
    'LAKE TUNDUMA': (0, 100, Decimal('2875')),
    'INFINITY': (450, 400, Decimal('2757')),
    'GBP MOROGORO': (0, 100, Decimal('2710')),
    'GBP KANGE': (0, 70, Decimal('2730')),
    'GPB KANGE': (0, 70, Decimal('2730')),
    # Rate entered by hand
    'CASH': (0, 0, Decimal('0')),
}

TANGA_RETURN_STATIONS = {'GBP KANGE', 'GPB KANGE'}


class StationRuleError(Exception):
    """Raised when a station query cannot be understood"""
    pass


class StationRuleSource:
    """One link in the resolver chain. Returns None to pass the query on."""
    name = ""

    def resolve(self, query: StationQuery) -> Optional[StationAllocation]:
        raise NotImplementedError


class DynamicStationSource(StationRuleSource):
    name = "dynamic"

    def __init__(self, stations: Optional[Iterable] = None):
        self._stations = list(stations) if stations is not None else None

    def _configs(self) -> List:
        if self._stations is None:
            from ..models import StationConfig
            self._stations = list(StationConfig.objects.filter(is_active=True))
        return self._stations

    def find(self, station_key: str):
        for config in self._configs():
            if config.station_name.strip().upper() == station_key:
                return config
        return None

    def resolve(self, query: StationQuery) -> Optional[StationAllocation]:
        config = self.find(query.station_key)
        if config is None:
            return None

        rate = Decimal(str(config.default_rate))
        currency = station_currency(query.station_key)
        default_liters = config.default_liters_for(query.direction)
        formula = config.formula_for(query.direction)

        if not formula:
            return StationAllocation(liters=default_liters, rate=rate, currency=currency, source="dynamic_default")

        if query.context.is_empty:
            # Truck not fetched yet, nothing to feed the formula with
            return StationAllocation(liters=default_liters, rate=rate, currency=currency, source="dynamic_default")

        try:
            liters = evaluate_formula(formula, query.context)
        except MissingDataError as e:
            logger.warning(f"Formula for {query.station_key} ({query.direction}) missing required data: {e.missing}")
            return StationAllocation(
                liters=0, rate=rate, currency=currency, source="dynamic_formula",
                formula_status=FORMULA_MISSING_DATA,
                formula_message=f"Missing: {', '.join(e.missing)} - enter liters manually",
                metadata={'formula': formula, 'missing': e.missing},
            )
        except FormulaEvaluationError as e:
            logger.warning(f"Formula evaluation failed for {query.station_key} ({query.direction}): {e}")
            return StationAllocation(
                liters=0, rate=rate, currency=currency, source="dynamic_formula",
                formula_status=FORMULA_ERROR,
                formula_message=f"Formula error: {formula} ({e})",
                metadata={'formula': formula},
            )

        logger.debug(f"Formula liters for {query.station_key} ({query.direction}): {liters}L")
        return StationAllocation(
            liters=liters, rate=rate, currency=currency, source="dynamic_formula",
            formula_status=FORMULA_APPLIED,
            formula_message=f"Formula: {formula} = {liters}L",
            metadata={'formula': formula},
        )


class LegacyTableSource(StationRuleSource):
    name = "legacy"

    def __init__(self, table: Optional[Dict[str, tuple]] = None):
        self.table = table if table is not None else LEGACY_STATION_TABLE

    def resolve(self, query: StationQuery) -> Optional[StationAllocation]:
        row = self.table.get(query.station_key)
        if row is None:
            return None

        going, returning, rate = row
        liters = going if query.direction == 'going' else returning
        dest = (query.destination or '').strip().lower()
        rule = "default"

        if query.direction == 'going' and is_zambia_station(query.station_key):
            if 'lusaka' in dest:
                liters, rule = 60, "lusaka"
            elif 'lubumbashi' in dest:
                liters, rule = 260, "lubumbashi"

        if query.station_key in TANGA_RETURN_STATIONS and query.direction == 'returning':
            if not dest or is_mombasa_destination(dest):
                liters, rule = 70, "tanga_return_mombasa"

        logger.debug(f"Legacy station rule {query.station_key}.{query.direction}.{rule} -> {liters}L @ {rate}")
        return StationAllocation(
            liters=liters, rate=rate, currency=station_currency(query.station_key),
            source="legacy_table", metadata={'rule': rule},
        )


class UnknownStationFallback(StationRuleSource):
    name = "fallback"

    def resolve(self, query: StationQuery) -> Optional[StationAllocation]:
        liters = int(getattr(settings, 'FUEL_UNKNOWN_STATION_LITERS', 350))
        rate = Decimal(str(getattr(settings, 'FUEL_UNKNOWN_STATION_RATE', '1.2')))
        logger.warning(f"Unknown station '{query.station}', using fallback {liters}L @ {rate}")
        return StationAllocation(
            liters=liters, rate=rate, currency=station_currency(query.station_key), source="fallback",
        )


class StationRuleResolver:
    """Ordered chain of rule sources."""

    def __init__(self, sources: Optional[List[StationRuleSource]] = None, stations: Optional[Iterable] = None):
        self.sources = sources if sources is not None else [
            DynamicStationSource(stations),
            LegacyTableSource(),
            UnknownStationFallback(),
        ]

    def resolve(
        self,
        station: str,
        direction: str,
        destination: Optional[str] = None,
        total_liters=None,
        extra_liters=None,
        balance=None,
    ) -> StationAllocation:
        """
        Resolve liters and rate for a station.

        Args:
            station: Station name, any case
            direction: 'going' or 'returning'
            destination: Destination used for the legacy overrides
            total_liters, extra_liters, balance: Journey values for formulas.
                Leave all three as None when no truck has been fetched yet.

        Returns:
            StationAllocation: Liters, rate, currency and formula outcome

        Raises:
            StationRuleError: If the direction is not recognised
        """
        if direction not in DIRECTIONS:
            raise StationRuleError(f"Unsupported direction: {direction}")

        query = StationQuery(
            station=station,
            direction=direction,
            destination=destination,
            context=FormulaContext(total_liters=total_liters, extra_liters=extra_liters, balance=balance),
        )
        for source in self.sources:
            allocation = source.resolve(query)
            if allocation is not None:
                allocation.metadata.setdefault('resolved_by', source.name)
                return allocation

        raise StationRuleError(f"No rule source could resolve station '{station}'")


def resolve_station_allocation(
    station: str,
    direction: str,
    destination: Optional[str] = None,
    total_liters=None,
    extra_liters=None,
    balance=None,
    stations: Optional[Iterable] = None,
) -> StationAllocation:
    """Convenience wrapper building a resolver over the active station configs."""
    return StationRuleResolver(stations=stations).resolve(
        station, direction, destination, total_liters, extra_liters, balance
    )
