# backend/services/bom.py
from collections import OrderedDict
from typing import Dict, List

from models.bom import BomGuide
from repositories.base import InventoryRepository
from schemas.bom import BomCheckRow, BomRequirement
from utils.errors import GuideNotFoundError


# Installation guides (bills of materials) and the read-only check of a
# guide against the stock held at every location.
class BomService:
    def __init__(self, repo: InventoryRepository):
        self.repo = repo

    def list_all(self) -> List[BomGuide]:
        return self.repo.list_bom()

    def guide_names(self) -> List[str]:
        return list(OrderedDict.fromkeys(row.guide_name for row in self.repo.list_bom()))

    def create(self, guide_name: str, item_code: str, required_quantity: int) -> BomGuide:
        row = self.repo.create_bom(guide_name=guide_name, item_code=item_code, required_quantity=required_quantity)
        self.repo.commit()
        return row

    def delete_guide(self, guide_name: str) -> int:
        removed = self.repo.delete_bom_guide(guide_name)
        if not removed:
            raise GuideNotFoundError()
        self.repo.commit()
        return removed

    # A part may be listed on several lines of one guide; the lines add up
    def requirements(self, guide_name: str) -> List[BomRequirement]:
        totals: Dict[str, int] = OrderedDict()
        for row in self.repo.list_bom(guide_name):
            totals[row.item_code] = totals.get(row.item_code, 0) + row.required_quantity
        return [BomRequirement(item_code=code, required_quantity=qty) for code, qty in totals.items()]

    def check(self, guide_name: str) -> List[BomCheckRow]:
        requirements = self.requirements(guide_name)
        if not requirements:
            raise GuideNotFoundError()

        stock: Dict[str, int] = {}
        names: Dict[str, str] = {}
        for item in self.repo.list_items():
            stock[item.code] = stock.get(item.code, 0) + item.stock
            names.setdefault(item.code, item.name)

        results = []
        for req in requirements:
            current = stock.get(req.item_code, 0)
            results.append(BomCheckRow(
                code=req.item_code,
                name=names.get(req.item_code) or f"Part {req.item_code}",
                required_quantity=req.required_quantity,
                current_stock=current,
                shortfall=max(0, req.required_quantity - current),
                status="sufficient" if current >= req.required_quantity else "shortage",
            ))
        return sorted(results, key=lambda row: row.code)
