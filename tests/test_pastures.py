from farm_dashboard.pastures import build_pastures, find_pasture
from farm_dashboard.schemas import Animal


def sheep(id, **kw):
    return Animal(id=id, sub_type="SHEEP_LANDRACE", health=90, age=24, **kw)


def test_same_named_buildings_stay_apart():
    animals = [
        sheep("1", location="Barn", pasture_id="p1"),
        sheep("2", location="Barn", pasture_id="p2"),
        sheep("3", location="Barn", pasture_id="p1"),
    ]

    pastures = build_pastures(animals)

    assert [(p.id, p.name, p.animal_count) for p in pastures] == [("p1", "Barn", 2), ("p2", "Barn", 1)]


def test_location_grouping_without_pasture_ids():
    animals = [
        sheep("1", location="North Pasture"),
        sheep("2", location="North Pasture"),
        sheep("3", location="Unknown"),
        sheep("4"),
    ]

    pastures = build_pastures(animals)

    assert len(pastures) == 1
    north = find_pasture(pastures, "pasture_North_Pasture")
    assert [a.id for a in north.animals] == ["1", "2"]
