# backend/schemas/layout.py
from datetime import datetime
from typing import List

from pydantic import Field, computed_field

from schemas.base import CamelModel
from utils.locations import build_location


class WarehouseZoneCreate(CamelModel):
    zone_name: str = Field(min_length=1)
    sub_zone_name: str = Field(min_length=1)
    floors: List[str] = Field(min_length=1)


class WarehouseZoneOut(CamelModel):
    id: int
    zone_name: str
    sub_zone_name: str
    floors: List[str]
    created_at: datetime

    # Location strings this zone contributes, one per floor
    @computed_field
    @property
    def locations(self) -> List[str]:
        return [build_location(self.zone_name, self.sub_zone_name, floor) for floor in self.floors]
