from farm_dashboard.capacity import (
    estimate_building_capacity,
    fence_capacity,
    polygon_area,
    resolve_capacity,
)

SQUARE_100M = [[0, 0], [100, 0], [100, 100], [0, 100]]


def test_building_heuristic():
    assert estimate_building_capacity("data/placeables/cowBarnBig.xml") == 80
    assert estimate_building_capacity("cowBarnMedium.xml") == 45
    assert estimate_building_capacity("cowBarnSmall.xml") == 15
    assert estimate_building_capacity("chickenCoop.xml") == 30
    assert estimate_building_capacity("horseStable.xml") == 10
    assert estimate_building_capacity("somethingElse.xml") == 20
    assert estimate_building_capacity(None) == 20


def test_polygon_area():
    assert polygon_area(SQUARE_100M) == 10000
    assert polygon_area(SQUARE_100M + [[0, 0]]) == 10000
    assert polygon_area([[0, 0], [10, 0]]) == 0


def test_fence_capacity():
    result = fence_capacity("pasture-a", SQUARE_100M)
    assert result["capacity"] == 159
    assert result["area"] == 10000


def test_small_fence_has_minimum_capacity():
    assert fence_capacity("pasture-b", [[0, 0], [10, 0], [10, 10], [0, 10]])["capacity"] == 5


def test_degenerate_fence_is_ignored():
    assert fence_capacity("pasture-c", [[0, 0], [0, 0], [5, 5]]) is None


def test_resolve_prefers_attribute_then_fence_then_building():
    info = resolve_capacity("p1", "cowBarnBig.xml", attribute=60, fence_points=SQUARE_100M)
    assert (info.capacity, info.source) == (60, "attribute")

    info = resolve_capacity("p1", "cowBarnBig.xml", fence_points=SQUARE_100M)
    assert (info.capacity, info.source, info.source_label) == (159, "fence_area", "Custom Fence Area")

    info = resolve_capacity("p1", "cowBarnBig.xml")
    assert (info.capacity, info.source, info.source_label) == (80, "building_type", "Building Type (Cow Barn)")

    info = resolve_capacity("p1", "")
    assert (info.capacity, info.source, info.source_label) == (20, "default", "Default Estimate")


def test_fence_cache_is_keyed_by_pasture():
    small = [[0, 0], [20, 0], [20, 20], [0, 20]]
    assert fence_capacity("same-shape-1", SQUARE_100M)["capacity"] == 159
    assert fence_capacity("same-shape-2", small)["capacity"] == 6
    assert fence_capacity("same-shape-1", SQUARE_100M)["capacity"] == 159
