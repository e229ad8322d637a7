# backend/services/layout.py
import logging
from typing import List, Set

from models.layout import WarehouseZone
from repositories.base import InventoryRepository
from utils.errors import ValidationError, ZoneNotFoundError
from utils.locations import build_location

logger = logging.getLogger(__name__)

DEFAULT_FLOORS = ["1층", "2층", "3층"]
DEFAULT_ZONES = [
    ("A구역", "A-1"), ("A구역", "A-2"),
    ("B구역", "B-1"), ("B구역", "B-2"),
    ("C구역", "C-1"), ("C구역", "C-2"),
    ("D구역", "D-1"), ("D구역", "D-2"),
]


# Zone / sub-zone / floor definitions. Carries no quantities; the
# reconciliation engine only asks it which location strings exist.
class LayoutService:
    def __init__(self, repo: InventoryRepository):
        self.repo = repo

    def list_zones(self) -> List[WarehouseZone]:
        return self.repo.list_zones()

    def create_zone(self, zone_name: str, sub_zone_name: str, floors: List[str]) -> WarehouseZone:
        if not floors:
            raise ValidationError("A zone needs at least one floor")
        for zone in self.repo.list_zones():
            if zone.zone_name == zone_name and zone.sub_zone_name == sub_zone_name:
                raise ValidationError(f"Zone {zone_name} / {sub_zone_name} already exists")
        zone = self.repo.create_zone(zone_name=zone_name, sub_zone_name=sub_zone_name, floors=list(floors))
        self.repo.commit()
        return zone

    def delete_zone(self, zone_id: int) -> None:
        if not self.repo.delete_zone(zone_id):
            raise ZoneNotFoundError()
        self.repo.commit()

    def known_locations(self) -> Set[str]:
        return {
            build_location(zone.zone_name, zone.sub_zone_name, floor)
            for zone in self.repo.list_zones()
            for floor in (zone.floors or [])
        }

    def is_known_location(self, location: str) -> bool:
        return location in self.known_locations()

    # Populate the standard A..D layout when none is defined yet
    def seed_defaults(self) -> int:
        if self.repo.list_zones():
            return 0
        for zone_name, sub_zone_name in DEFAULT_ZONES:
            self.repo.create_zone(zone_name=zone_name, sub_zone_name=sub_zone_name, floors=list(DEFAULT_FLOORS))
        self.repo.commit()
        logger.info("Seeded default warehouse layout with %d zones", len(DEFAULT_ZONES))
        return len(DEFAULT_ZONES)
