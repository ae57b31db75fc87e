"""Which fuel record column a station's liters are posted to."""

import logging
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

# Station name -> (going column, returning column)
LEGACY_CHECKPOINT_FIELDS: Dict[str, tuple] = {
    'LAKE CHILABOMBWE': ('zambia_going', 'zambia_return'),
    'LAKE NDOLA': ('zambia_going', 'zambia_return'),
    'LAKE KAPIRI': ('zambia_going', 'zambia_return'),
    'LAKE KITWE': ('zambia_going', 'zambia_return'),
    'LAKE KABANGWA': ('zambia_going', 'zambia_return'),
    'LAKE CHINGOLA': ('zambia_going', 'zambia_return'),
    'LAKE TUNDUMA': ('tdm_going', 'tunduma_return'),
    'INFINITY': ('mbeya_going', 'mbeya_return'),
    'GBP MOROGORO': ('moro_going', 'moro_return'),
    'GBP KANGE': ('moro_going', 'tanga_return'),
    'GPB KANGE': ('moro_going', 'tanga_return'),
    'CASH': ('dar_going', 'dar_return'),
}


def checkpoint_field_for(station: str, direction: str, stations: Optional[Iterable] = None) -> Optional[str]:
    """
    Resolve the checkpoint column for a station and direction.

    An active station config with a column set wins over the legacy mapping.
    Returns None when neither knows the station.
    """
    key = (station or '').strip().upper()
    if stations is None:
        from ..models import StationConfig
        stations = StationConfig.objects.filter(is_active=True)

    for config in stations:
        if config.station_name.strip().upper() != key:
            continue
        column = config.fuel_record_field_going if direction == 'going' else config.fuel_record_field_returning
        if column:
            return column
        break

    row = LEGACY_CHECKPOINT_FIELDS.get(key)
    if row is None:
        logger.warning(f"No checkpoint column configured for station {key}")
        return None
    return row[0] if direction == 'going' else row[1]
