from __future__ import annotations

import re
from typing import Optional

# Destination names that route a truck through the Tanga corridor
MOMBASA_CLASS_NAMES = {"MOMBASA", "MSA"}

_WORD_RE = re.compile(r"[A-Z0-9]+")


def is_mombasa_destination(destination: Optional[str]) -> bool:
    """
    True when the destination names Mombasa, matching whole words only.

    "MSA", "Mombasa Port" and "DAR-MSA" match; "MSASA" or "KIMSAMBA" do not.
    """
    words = set(_WORD_RE.findall((destination or "").upper()))
    return bool(words & MOMBASA_CLASS_NAMES)


def is_zambia_station(station: Optional[str]) -> bool:
    """Lake-branded stations sit on the Zambia leg, except the Tunduma border one."""
    name = (station or "").strip().upper()
    return name.startswith("LAKE") and "TUNDUMA" not in name


def station_currency(station: Optional[str]) -> str:
    return "USD" if is_zambia_station(station) else "TZS"
