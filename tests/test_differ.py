import pytest

from farm_dashboard.differ import (
    diff_animals,
    diff_statistics,
    diff_warnings,
    filter_significant_changes,
    has_significant_status_changes,
)
from farm_dashboard.schemas import Animal, AnimalUpdate, Farm, LivestockChanges, Pasture, PastureWarning, Snapshot


def cow(id, **kw):
    kw.setdefault("sub_type", "COW_HOLSTEIN")
    kw.setdefault("health", 90)
    kw.setdefault("age", 24)
    return Animal(id=id, name=f"Cow {id}", **kw)


def test_diff_of_identical_snapshot_is_empty():
    herd = [cow("1"), cow("2", is_pregnant=True), cow("3", location="Barn")]
    changes = diff_animals(herd, herd)
    assert changes.added == []
    assert changes.removed == []
    assert changes.updated == []
    assert changes.is_empty()


def test_added_removed_and_health_update():
    old = [cow("1", health=80), cow("2", health=50)]
    new = [cow("1", health=60), cow("3", health=90)]

    changes = diff_animals(old, new)

    assert [a.id for a in changes.added] == ["3"]
    assert [a.id for a in changes.removed] == ["2"]
    assert len(changes.updated) == 1
    assert changes.updated[0].id == "1"
    assert changes.updated[0].changes == {"health": {"old": 80, "new": 60}}


@pytest.mark.parametrize("new_health, reported", [(65, False), (64.99, True), (95, False), (95.01, True)])
def test_health_threshold_is_exclusive(new_health, reported):
    changes = diff_animals([cow("1", health=80)], [cow("1", health=new_health)])
    assert bool(changes.updated) is reported


@pytest.mark.parametrize(
    "new_age, reported",
    [(10.05, False), (10.06, True), (10.5, True), (10.51, False), (9.5, False), (10, False)],
)
def test_age_increase_window(new_age, reported):
    changes = diff_animals([cow("1", age=10)], [cow("1", age=new_age)])
    assert bool(changes.updated) is reported


def test_age_change_is_rounded_to_two_decimals():
    changes = diff_animals([cow("1", age=10.001)], [cow("1", age=10.3333)])
    assert changes.updated[0].changes["age"] == {"old": 10.0, "new": 10.33}


def test_breeding_flags_and_location():
    old = [cow("1", is_pregnant=True, is_lactating=False, location="North Barn", pasture_id="p1")]
    new = [cow("1", is_pregnant=False, is_lactating=True, location="", pasture_id="")]

    changes = diff_animals(old, new).updated[0].changes

    assert changes["isPregnant"] == {"old": True, "new": False}
    assert changes["isLactating"] == {"old": False, "new": True}
    assert changes["location"] == {"old": "North Barn", "new": "Free roaming"}


def test_weight_and_genetics_are_not_diffed():
    old = [cow("1", weight=500)]
    new = [cow("1", weight=700, genetics={"quality": 1.5})]
    assert diff_animals(old, new).is_empty()


def test_records_without_identity_are_ignored():
    old = [cow(""), cow("1")]
    new = [cow("1"), cow("", health=10)]
    assert diff_animals(old, new).is_empty()


def _pasture(id, *warnings):
    return Pasture(
        id=id,
        name=id.title(),
        all_warnings=[PastureWarning(type=t, severity="warning", message=m) for t, m in warnings],
    )


def test_warning_diff_uses_group_type_and_message():
    old = [
        _pasture("north", ("health", "2 sick animals (0 critical)")),
        _pasture("south", ("age", "3 aging animals need replacement planning")),
    ]
    new = [
        _pasture("north", ("health", "2 sick animals (0 critical)")),
        _pasture("south", ("health", "2 sick animals (0 critical)")),
    ]

    changes = diff_warnings(old, new)

    assert [(w.pasture_id, w.type) for w in changes.new] == [("south", "health")]
    assert [(w.pasture_id, w.type) for w in changes.resolved] == [("south", "age")]
    assert changes.total == 2


def test_statistics_are_plain_counts():
    old = Snapshot(animals=[cow("1")], farms=[Farm(id="1", internal_id="1", name="Farm 1")])
    new = Snapshot(animals=[cow("1"), cow("2")], farms=[Farm(id="1", internal_id="1", name="Farm 1")])

    stats = diff_statistics(old, new)

    assert stats["animals"].old == 1 and stats["animals"].new == 2 and stats["animals"].changed
    assert not stats["pastures"].changed
    assert not stats["farms"].changed


def test_status_precheck():
    herd = [cow("1", health=90), cow("2")]
    assert not has_significant_status_changes(herd, [cow("1", health=88), cow("2")])
    assert has_significant_status_changes(herd, [cow("1", health=70), cow("2")])
    assert has_significant_status_changes(herd, [cow("1", health=90), cow("2", is_lactating=True)])
    assert has_significant_status_changes(herd, herd[:1])


def test_live_filter_keeps_breeding_and_large_health_updates():
    old = [cow("1", age=24), cow("2"), cow("3", health=90), cow("4")]
    new = [cow("1", age=24.3), cow("2", is_lactating=True), cow("3", health=70), cow("5")]

    filtered = filter_significant_changes(diff_animals(old, new))

    assert [a.id for a in filtered.added] == ["5"]
    assert [a.id for a in filtered.removed] == ["4"]
    assert [u.id for u in filtered.updated] == ["2", "3"]


def test_live_filter_health_boundary():
    def update(old, new):
        return AnimalUpdate(id="1", changes={"health": {"old": old, "new": new}})

    livestock = LivestockChanges(updated=[update(80, 65), update(80, 66), update(10, 90)])
    kept = filter_significant_changes(livestock).updated
    assert [(u.changes["health"]["old"], u.changes["health"]["new"]) for u in kept] == [(80, 65), (10, 90)]


def test_raw_values_are_normalized_on_construction():
    a = Animal.model_validate({
        "id": 7, "health": "85 %", "age": None, "weight": "", "isPregnant": "true",
        "gender": " FEMALE ", "subType": None, "genetics": {"quality": "1.2", "fertility": None},
    })
    assert a.id == "7"
    assert a.health == 85
    assert a.age == 0 and a.weight == 0
    assert a.is_pregnant is True
    assert a.gender == "female"
    assert a.sub_type == "Unknown"
    assert a.genetics.quality == 1.2
    assert a.genetics.fertility == 0
    assert a.genetics.metabolism == 1.0
    assert a.mother_id == "-1"
