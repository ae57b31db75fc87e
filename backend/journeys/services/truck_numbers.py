"""Truck number normalisation: "T991 EFN", "T991-EFN" and "t991efn" are one truck."""
import re

_SEPARATORS_RE = re.compile(r"[\s-]")
_PLATE_RE = re.compile(r"^(T\d{3,4})([A-Z]{3})$")


def normalize_truck_no(truck_no) -> str:
    if not truck_no:
        return ''
    return _SEPARATORS_RE.sub('', str(truck_no)).upper().strip()


def is_truck_no_match(first, second) -> bool:
    return normalize_truck_no(first) == normalize_truck_no(second)


def format_truck_no_display(truck_no) -> str:
    """T991EFN -> T991 EFN. Plates outside the usual pattern come back normalised."""
    normalized = normalize_truck_no(truck_no)
    m = _PLATE_RE.match(normalized)
    if m:
        return f"{m.group(1)} {m.group(2)}"
    return normalized


def is_valid_truck_no(truck_no) -> bool:
    return bool(_PLATE_RE.match(normalize_truck_no(truck_no)))
