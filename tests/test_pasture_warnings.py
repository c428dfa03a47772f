from farm_dashboard.pasture_warnings import (
    condition_report,
    derive_birth_warnings,
    derive_warnings,
    months_remaining,
    pregnancy_details,
    pregnancy_progress,
)
from farm_dashboard.schemas import Animal, FoodReport, Genetics, Pasture


def animal(i, **kw):
    kw.setdefault("sub_type", "SHEEP_LANDRACE")
    kw.setdefault("health", 95)
    kw.setdefault("age", 24)
    kw.setdefault("gender", "female")
    return Animal(id=str(i), name=f"Animal {i}", **kw)


def warnings_for(members, capacity=20, food=None):
    pasture = Pasture(id="p1", name="Pasture", capacity=capacity)
    return derive_warnings(pasture, members, condition_report(members), food)


def by_type(warnings, kind):
    return [w for w in warnings if w.type == kind]


def test_capacity_at_ninety_percent_is_a_warning():
    found = by_type(warnings_for([animal(i) for i in range(18)]), "capacity")
    assert len(found) == 1
    assert found[0].severity == "warning"
    assert found[0].details["availableSpace"] == 2
    assert found[0].details["utilizationPercent"] == 90
    assert found[0].details["totalValue"] > 0


def test_capacity_full_is_danger():
    found = by_type(warnings_for([animal(i) for i in range(20)]), "capacity")
    assert len(found) == 1
    assert found[0].severity == "danger"
    assert found[0].details["availableSpace"] == 0
    assert found[0].message == "At 100% capacity (20/20)"


def test_capacity_just_under_ninety_percent_is_silent():
    members = [animal(i) for i in range(8999)]
    assert by_type(warnings_for(members, capacity=10000), "capacity") == []


def test_empty_group_yields_no_member_warnings():
    report = condition_report([])
    assert report.productivity == 0
    warnings = warnings_for([])
    for kind in ("capacity", "health", "age", "production", "dairy_optimization"):
        assert by_type(warnings, kind) == []


def test_food_levels():
    food = FoodReport(total_capacity=1000, mixed_ration=500, hay=150, silage=50, grass=200)
    found = by_type(warnings_for([animal(1)], food=food), "food")
    assert [(w.message, w.severity) for w in found] == [
        ("Low hay: 15% remaining", "warning"),
        ("Low silage: 5% remaining", "danger"),
    ]


def test_food_rule_skipped_without_capacity():
    food = FoodReport(total_capacity=0)
    assert by_type(warnings_for([animal(1)], food=food), "food") == []
    assert by_type(warnings_for([animal(1)], food=None), "food") == []


def test_health_partitions():
    members = [animal(1, health=50), animal(2, health=10), animal(3, health=90)]
    found = by_type(warnings_for(members), "health")
    assert len(found) == 1
    assert found[0].severity == "danger"
    assert found[0].details == {"total": 2, "critical": 1, "warning": 1}


def test_production_needs_more_than_five_lactating_cows():
    cows = [animal(i, sub_type="COW_HOLSTEIN", is_lactating=True) for i in range(6)]
    found = by_type(warnings_for(cows, capacity=100), "production")
    assert len(found) == 1
    assert found[0].details["totalProduction"] == 120

    assert by_type(warnings_for(cows[:5], capacity=100), "production") == []


def test_cows_raise_maintenance_warning():
    cows = [animal(i, sub_type="COW_ANGUS") for i in range(3)]
    found = by_type(warnings_for(cows), "maintenance")
    assert len(found) == 1
    assert found[0].details["manure"] == 9


def test_breeding_ratio():
    members = [animal(i) for i in range(21)] + [animal(99, gender="male")]
    found = by_type(warnings_for(members, capacity=100), "breeding")
    assert len(found) == 1
    assert found[0].details["ratio"] == 21

    members = [animal(i) for i in range(20)] + [animal(99, gender="male")]
    assert by_type(warnings_for(members, capacity=100), "breeding") == []


def test_aging_share():
    # sheep expectancy 144 months, aging above 115.2
    members = [animal(1, age=120), animal(2, age=130), animal(3, age=20), animal(4, age=30)]
    found = by_type(warnings_for(members), "age")
    assert len(found) == 1
    assert found[0].details == {"total": 2, "percentage": 50}

    members = [animal(1, age=120), animal(2, age=20), animal(3, age=30), animal(4, age=40)]
    assert by_type(warnings_for(members), "age") == []


def test_dairy_mother_with_calf():
    members = [
        animal(1, sub_type="COW_HOLSTEIN", age=48, is_lactating=True),
        animal(2, sub_type="COW_HOLSTEIN", age=6),
    ]
    found = by_type(warnings_for(members), "dairy_optimization")
    assert len(found) == 1
    details = found[0].details
    assert details["totalMothers"] == 1
    assert details["totalOffspring"] == 1
    assert details["potentialMilkGain"] == 15
    assert details["motherOffspringPairs"][0]["mother"]["id"] == "1"


def test_condition_report():
    members = [
        animal(1, sub_type="COW_HOLSTEIN", is_lactating=True, genetics=Genetics(productivity=0.9)),
        animal(2, sub_type="PIG_LANDRACE", genetics=Genetics(productivity=1.2)),
        animal(3),
    ]
    report = condition_report(members)
    assert report.productivity == 70.0
    assert report.milk == 20
    assert report.straw == 3
    assert report.manure == 6


def test_pregnancy_progress_buckets():
    assert pregnancy_progress(0.95) == 0.8
    assert pregnancy_progress(0.7) == 0.6
    assert pregnancy_progress(0.5) == 0.4
    assert pregnancy_progress(0.3) == 0.2


def test_birth_due():
    # pig: 4 months gestation, 0.8 progress -> 1 month left
    pig = animal(1, sub_type="PIG_LANDRACE", is_pregnant=True, reproduction=0.9)
    assert months_remaining(pig) == 1
    found = derive_birth_warnings([pig])
    assert [(w.type, w.months_remaining) for w in found] == [("birth_due", 1)]

    # cow: 9 months gestation, 0.2 progress -> 7 months left
    cow = animal(2, sub_type="COW_HOLSTEIN", is_pregnant=True, reproduction=0.1)
    assert derive_birth_warnings([cow]) == []


def test_breeding_risk_with_bull_present():
    heifer = animal(1, sub_type="COW_HOLSTEIN", age=8)
    bull = animal(2, sub_type="BULL_ANGUS", gender="male", age=30)
    found = derive_birth_warnings([heifer, bull])
    assert [(w.animal_id, w.type) for w in found] == [("1", "breeding_risk")]

    assert derive_birth_warnings([heifer]) == []


def test_pregnancy_details():
    horse = animal(1, sub_type="HORSE_BAY", is_pregnant=True, reproduction=0.85)
    details = pregnancy_details(horse)
    assert details["gestation_months"] == 11
    assert details["expected_offspring"] == "1"
    assert details["months_remaining"] == 2
