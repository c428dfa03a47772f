"""
Operational warnings for a pasture.

Every rule is evaluated on its own, so a pasture carries zero or more
warnings at once. The rules only read their inputs; nothing here keeps
state between calls.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from .capacity import DEFAULT_CAPACITY
from .normalize import round_half_up
from .schemas import Animal, BirthWarning, ConditionReport, FoodReport, Pasture, PastureWarning
from .valuation import value_group

CAPACITY_WARN_PERCENT = 90
CAPACITY_FULL_PERCENT = 100

FOOD_TYPES = ("mixed_ration", "hay", "silage", "grass")
FOOD_LABELS = {"mixed_ration": "mixedRation", "hay": "hay", "silage": "silage", "grass": "grass"}
FOOD_LOW_PERCENT = 20
FOOD_CRITICAL_PERCENT = 10

SICK_HEALTH = 70
CRITICAL_HEALTH = 20

MILK_PER_COW = 20
LACTATING_COWS_THRESHOLD = 5

BREEDING_MIN_FEMALES = 10
BREEDING_MAX_RATIO = 20

LIFE_EXPECTANCY = {"COW": 240, "PIG": 180, "SHEEP": 144, "GOAT": 168, "HORSE": 360, "CHICKEN": 96}
DEFAULT_LIFE_EXPECTANCY = 200
AGING_FRACTION = 0.8
AGING_GROUP_SHARE = 0.3

DAIRY_TYPES = ("COW", "GOAT", "SHEEP")
OFFSPRING_MAX_AGE = 12
MILK_GAIN_PER_MOTHER = 15

GESTATION_MONTHS = {"COW": 9, "PIG": 4, "SHEEP": 5, "GOAT": 5, "HORSE": 11, "CHICKEN": 1}
DEFAULT_GESTATION_MONTHS = 6
EXPECTED_OFFSPRING = {"COW": "1", "PIG": "8-12", "SHEEP": "1-2", "GOAT": "1-2", "HORSE": "1", "CHICKEN": "8-15"}
DEFAULT_EXPECTED_OFFSPRING = "1-2"
BREEDING_RISK_MAX_AGE = 11


def _base_type(animal: Animal) -> str:
    return animal.sub_type.split("_")[0] if animal.sub_type else animal.type


def condition_report(animals: Sequence[Animal]) -> ConditionReport:
    total_productivity = 0.0
    milk = 0
    straw = 0
    manure = 0

    for a in animals:
        if a.genetics:
            total_productivity += a.genetics.productivity * 100
        if a.is_lactating and "COW" in a.sub_type:
            milk += MILK_PER_COW
        straw += 1
        if "COW" in a.sub_type:
            manure += 3
        elif "PIG" in a.sub_type:
            manure += 2
        else:
            manure += 1

    productivity = round_half_up(total_productivity / len(animals), 1) if animals else 0
    return ConditionReport(productivity=productivity, milk=milk, straw=straw, manure=manure)


# -----------------------------
# Rules
# -----------------------------

def capacity_warning(pasture: Pasture, animals: Sequence[Animal]) -> Optional[PastureWarning]:
    capacity = pasture.capacity or DEFAULT_CAPACITY
    percent = len(animals) * 100 / capacity
    if percent < CAPACITY_WARN_PERCENT:
        return None

    info = pasture.capacity_info
    return PastureWarning(
        type="capacity",
        severity="danger" if percent >= CAPACITY_FULL_PERCENT else "warning",
        message=f"At {round_half_up(percent):.0f}% capacity ({len(animals)}/{capacity})",
        affected_animals=list(animals),
        details={
            "currentAnimals": len(animals),
            "maxCapacity": capacity,
            "utilizationPercent": percent,
            "availableSpace": max(0, capacity - len(animals)),
            "capacitySource": info.source_label if info else "Default Estimate",
            "calculationMethod": info.method if info else {},
            "totalValue": value_group(animals),
        },
    )


def food_warnings(food: Optional[FoodReport]) -> List[PastureWarning]:
    if food is None or food.total_capacity <= 0:
        return []

    out: List[PastureWarning] = []
    for food_type in FOOD_TYPES:
        amount = getattr(food, food_type)
        percent = amount / food.total_capacity * 100
        if percent < FOOD_LOW_PERCENT:
            out.append(PastureWarning(
                type="food",
                severity="danger" if percent < FOOD_CRITICAL_PERCENT else "warning",
                message=f"Low {FOOD_LABELS[food_type]}: {round_half_up(percent):.0f}% remaining",
                details={"foodType": FOOD_LABELS[food_type], "amount": amount, "percent": percent},
            ))
    return out


def health_warning(animals: Sequence[Animal]) -> Optional[PastureWarning]:
    sick = [a for a in animals if a.health < SICK_HEALTH]
    if not sick:
        return None
    critical = [a for a in sick if a.health < CRITICAL_HEALTH]
    return PastureWarning(
        type="health",
        severity="danger" if critical else "warning",
        message=f"{len(sick)} sick animals ({len(critical)} critical)",
        affected_animals=sick,
        details={
            "total": len(sick),
            "critical": len(critical),
            "warning": len(sick) - len(critical),
        },
    )


def production_warning(animals: Sequence[Animal], report: ConditionReport) -> Optional[PastureWarning]:
    lactating_cows = [a for a in animals if a.is_lactating and "COW" in a.sub_type]
    if len(lactating_cows) <= LACTATING_COWS_THRESHOLD:
        return None
    milk = MILK_PER_COW * len(lactating_cows)
    return PastureWarning(
        type="production",
        severity="info",
        message=f"High milk production: {milk}L/day from {len(lactating_cows)} cows",
        affected_animals=lactating_cows,
        details={"totalProduction": milk, "cowCount": len(lactating_cows), "reportedMilk": report.milk},
    )


def maintenance_warning(animals: Sequence[Animal], report: ConditionReport) -> Optional[PastureWarning]:
    if report.manure <= len(animals) * 2:
        return None
    return PastureWarning(
        type="maintenance",
        severity="warning",
        message=f"High manure production: {report.manure:g} units/day",
        details={"manure": report.manure, "animalCount": len(animals)},
    )


def breeding_warning(animals: Sequence[Animal]) -> Optional[PastureWarning]:
    males = [a for a in animals if a.gender_key == "male"]
    females = [a for a in animals if a.gender_key == "female"]
    if not males or len(females) <= BREEDING_MIN_FEMALES:
        return None
    ratio = len(females) / len(males)
    if ratio <= BREEDING_MAX_RATIO:
        return None
    return PastureWarning(
        type="breeding",
        severity="info",
        message=f"Breeding ratio: 1 male to {round_half_up(ratio):.0f} females",
        details={"males": len(males), "females": len(females), "ratio": ratio},
    )


def is_aging(animal: Animal) -> bool:
    expectancy = LIFE_EXPECTANCY.get(animal.type or _base_type(animal), DEFAULT_LIFE_EXPECTANCY)
    return animal.age > expectancy * AGING_FRACTION


def age_warning(animals: Sequence[Animal]) -> Optional[PastureWarning]:
    aging = [a for a in animals if is_aging(a)]
    if not aging or len(aging) <= len(animals) * AGING_GROUP_SHARE:
        return None
    return PastureWarning(
        type="age",
        severity="warning",
        message=f"{len(aging)} aging animals need replacement planning",
        affected_animals=aging,
        details={
            "total": len(aging),
            "percentage": int(round_half_up(len(aging) / len(animals) * 100)),
        },
    )


def dairy_warning(animals: Sequence[Animal]) -> Optional[PastureWarning]:
    mothers = [
        a for a in animals
        if a.is_lactating and any(t in a.sub_type for t in DAIRY_TYPES)
    ]

    pairs = []
    for mother in mothers:
        mother_type = _base_type(mother)
        offspring = [
            a for a in animals
            if _base_type(a) == mother_type
            and a.age < OFFSPRING_MAX_AGE
            and a.id != mother.id
            and not a.is_lactating
        ]
        if offspring:
            pairs.append((mother, offspring, mother_type))

    if not pairs:
        return None

    total_mothers = len(pairs)
    total_offspring = sum(len(o) for _, o, _ in pairs)
    affected = [m for m, _, _ in pairs] + [a for _, o, _ in pairs for a in o]
    return PastureWarning(
        type="dairy_optimization",
        severity="info",
        message=(
            f"{total_mothers} lactating mothers with {total_offspring} young animals"
            " - separate for optimal milk production"
        ),
        affected_animals=affected,
        details={
            "motherOffspringPairs": [
                {
                    "type": kind,
                    "mother": {"id": m.id, "name": m.display_name, "age": m.age},
                    "offspring": [{"id": a.id, "name": a.display_name, "age": a.age} for a in o],
                }
                for m, o, kind in pairs
            ],
            "totalMothers": total_mothers,
            "totalOffspring": total_offspring,
            "potentialMilkGain": total_mothers * MILK_GAIN_PER_MOTHER,
        },
    )


def derive_warnings(
    pasture: Pasture,
    animals: Sequence[Animal],
    report: ConditionReport,
    food: Optional[FoodReport],
) -> List[PastureWarning]:
    out: List[PastureWarning] = []

    def add(w):
        if w is not None:
            out.append(w)

    add(capacity_warning(pasture, animals))
    out.extend(food_warnings(food))
    add(health_warning(animals))
    add(production_warning(animals, report))
    add(maintenance_warning(animals, report))
    add(breeding_warning(animals))
    add(age_warning(animals))
    add(dairy_warning(animals))
    return out


# -----------------------------
# Births
# -----------------------------

def pregnancy_progress(reproduction: float) -> float:
    percent = reproduction * 100
    if percent > 80:
        return 0.8
    if percent > 60:
        return 0.6
    if percent > 40:
        return 0.4
    return 0.2


def gestation_months(animal: Animal) -> int:
    return GESTATION_MONTHS.get(animal.type or _base_type(animal), DEFAULT_GESTATION_MONTHS)


def months_remaining(animal: Animal) -> int:
    progress = pregnancy_progress(animal.reproduction)
    return max(0, int(round_half_up(gestation_months(animal) * (1 - progress))))


def pregnancy_details(animal: Animal) -> dict:
    kind = animal.type or _base_type(animal)
    remaining = months_remaining(animal)
    return {
        "animal_id": animal.id,
        "gestation_months": gestation_months(animal),
        "expected_offspring": EXPECTED_OFFSPRING.get(kind, DEFAULT_EXPECTED_OFFSPRING),
        "progress": pregnancy_progress(animal.reproduction),
        "months_remaining": remaining,
        "due_soon": remaining == 0,
    }


def derive_birth_warnings(animals: Sequence[Animal]) -> List[BirthWarning]:
    has_bull = any(
        a.gender_key == "male" and ("COW" in a.sub_type or "BULL" in a.sub_type)
        for a in animals
    )

    out: List[BirthWarning] = []
    for a in animals:
        if a.is_pregnant:
            remaining = months_remaining(a)
            if remaining <= 1:
                out.append(BirthWarning(
                    animal_id=a.id,
                    animal_name=a.display_name,
                    type="birth_due",
                    message=f"{a.display_name} due to give birth soon",
                    months_remaining=remaining,
                ))

        if has_bull and a.age < BREEDING_RISK_MAX_AGE and a.gender_key == "female":
            label = a.name or f"#{a.id}"
            out.append(BirthWarning(
                animal_id=a.id,
                animal_name=a.display_name,
                type="breeding_risk",
                message=f"Young female {label} ({a.age:g} months) with bull present",
                age=a.age,
            ))
    return out
