import pytest

from services.bom import BomService
from services.layout import DEFAULT_ZONES, LayoutService
from utils.errors import GuideNotFoundError, ValidationError, ZoneNotFoundError
from utils.locations import build_location, join_locations, split_locations


@pytest.fixture
def bom(repo):
    service = BomService(repo)
    service.create("guideA", "P1", 3)
    service.create("guideA", "P1", 2)
    service.create("guideA", "P2", 5)
    service.create("guideB", "P3", 1)
    return service


def test_requirements_sum_repeated_parts(bom):
    rows = bom.requirements("guideA")
    assert [(r.item_code, r.required_quantity) for r in rows] == [("P1", 5), ("P2", 5)]


def test_check_compares_with_stock_at_all_locations(bom, add_row):
    add_row("P1", 3, "A구역-1-1", name="Bracket")
    add_row("P1", 1, "B구역-1-1", name="Bracket")
    add_row("P2", 10, "A구역-1-2", name="Screw")

    p1, p2 = bom.check("guideA")

    assert (p1.code, p1.name, p1.required_quantity, p1.current_stock, p1.shortfall, p1.status) == \
        ("P1", "Bracket", 5, 4, 1, "shortage")
    assert (p2.code, p2.required_quantity, p2.current_stock, p2.shortfall, p2.status) == \
        ("P2", 5, 10, 0, "sufficient")


def test_check_names_unknown_parts_generically(bom):
    [row] = bom.check("guideB")
    assert (row.name, row.current_stock, row.status) == ("Part P3", 0, "shortage")


def test_check_output_sorted_by_code(repo):
    service = BomService(repo)
    for code in ("Z9", "A1", "M5"):
        service.create("guideC", code, 1)
    assert [row.code for row in service.check("guideC")] == ["A1", "M5", "Z9"]


def test_unknown_guide(bom):
    with pytest.raises(GuideNotFoundError):
        bom.check("missing")
    with pytest.raises(GuideNotFoundError):
        bom.delete_guide("missing")


def test_delete_guide_removes_only_its_lines(bom):
    assert bom.delete_guide("guideA") == 3
    assert bom.guide_names() == ["guideB"]


@pytest.mark.parametrize("zone, sub_zone, floor, expected", [
    ("A구역", "A-1", "1층", "A구역-1-1"),
    ("D구역", "D-2", "3층", "D구역-2-3"),
    ("B구역", "B", "2", "B구역-B-2"),
])
def test_build_location(zone, sub_zone, floor, expected):
    assert build_location(zone, sub_zone, floor) == expected


def test_location_lists():
    assert join_locations(["A구역-1-1", None, "B구역-1-1", "A구역-1-1"]) == "A구역-1-1,B구역-1-1"
    assert join_locations([]) is None
    assert split_locations("A구역-1-1, B구역-1-1") == ["A구역-1-1", "B구역-1-1"]
    assert split_locations(None) == []


def test_default_layout_seeded_once(repo):
    layout = LayoutService(repo)

    assert layout.seed_defaults() == len(DEFAULT_ZONES)
    assert layout.seed_defaults() == 0
    assert len(layout.known_locations()) == len(DEFAULT_ZONES) * 3
    assert layout.is_known_location("C구역-2-3")


def test_zone_validation(repo):
    layout = LayoutService(repo)
    zone = layout.create_zone("E구역", "E-1", ["1층"])

    with pytest.raises(ValidationError):
        layout.create_zone("E구역", "E-1", ["2층"])
    with pytest.raises(ValidationError):
        layout.create_zone("F구역", "F-1", [])

    layout.delete_zone(zone.id)
    with pytest.raises(ZoneNotFoundError):
        layout.delete_zone(zone.id)
