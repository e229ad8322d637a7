# backend/utils/locations.py
from typing import List, Optional

FLOOR_SUFFIX = "층"
LOCATION_SEPARATOR = ","


# "A구역", "A-1", "2층" -> "A구역-1-2"
def build_location(zone_name: str, sub_zone_name: str, floor: str) -> str:
    parts = sub_zone_name.split("-")
    sub_zone = parts[1] if len(parts) > 1 and parts[1] else parts[0]
    return f"{zone_name}-{sub_zone}-{str(floor).replace(FLOOR_SUFFIX, '')}"


# Ledger entries keep multi-row FIFO sources as "A구역-1-1,B구역-2-1"
def join_locations(locations) -> Optional[str]:
    seen: List[str] = []
    for loc in locations:
        if loc and loc not in seen:
            seen.append(loc)
    return LOCATION_SEPARATOR.join(seen) if seen else None


def split_locations(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(LOCATION_SEPARATOR) if part.strip()]
