"""
Market value estimate for a single animal.

Mirrors the livestock economy of the enhanced-livestock mod: an age-indexed
sell price from a per-type curve, adjusted for meat quality, weight against
the expected weight for the animal's age, health, and reproductive status.
All lookup data lives in the tables below; adding a breed is a table edit.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .normalize import round_half_up
from .schemas import Animal, Valuation

# subType -> (base value, target weight kg, birth weight kg)
BREED_VALUES: Dict[str, Tuple[float, float, float]] = {
    "COW_SWISS_BROWN": (2500, 700, 40),
    "COW_HOLSTEIN": (2500, 680, 40),
    "COW_ANGUS": (2600, 850, 35),
    "COW_HEREFORD": (2600, 850, 35),
    "COW_LIMOUSIN": (2700, 900, 40),
    "COW_WATERBUFFALO": (3000, 750, 35),
    "BULL_SWISS_BROWN": (3000, 1000, 45),
    "BULL_HOLSTEIN": (3000, 1000, 45),
    "BULL_ANGUS": (3200, 1050, 40),
    "BULL_HEREFORD": (3200, 1050, 40),
    "BULL_LIMOUSIN": (3400, 1150, 45),
    "BULL_WATERBUFFALO": (3600, 1000, 40),
    "PIG_LANDRACE": (600, 120, 1.5),
    "PIG_BLACK_PIED": (650, 130, 1.5),
    "PIG_BERKSHIRE": (700, 140, 1.5),
    "SHEEP_LANDRACE": (450, 80, 4),
    "SHEEP_STEINSCHAF": (450, 75, 4),
    "SHEEP_SWISS_MOUNTAIN": (500, 85, 4),
    "SHEEP_BLACK_WELSH": (500, 70, 3.5),
    "GOAT": (450, 70, 3),
    "HORSE_GRAY": (5000, 600, 50),
    "HORSE_PINTO": (5000, 600, 50),
    "HORSE_PALOMINO": (5000, 600, 50),
    "HORSE_CHESTNUT": (5500, 620, 50),
    "HORSE_BAY": (5500, 620, 50),
    "HORSE_BLACK": (6000, 640, 50),
    "CHICKEN": (15, 3, 0.05),
    "CHICKEN_ROOSTER": (20, 4, 0.05),
}

# Type prefix fallbacks when a breed is not listed.
TYPE_VALUES: Dict[str, Tuple[float, float, float]] = {
    "COW": (2500, 700, 40),
    "BULL": (3000, 1000, 45),
    "PIG": (600, 120, 1.5),
    "SHEEP": (450, 80, 4),
    "GOAT": (450, 70, 3),
    "HORSE": (5000, 600, 50),
    "CHICKEN": (15, 3, 0.05),
}

DEFAULT_VALUES: Tuple[float, float, float] = (1000, 500, 30)

# Months over which an animal grows from birth weight to target weight.
REPRODUCTION_AGE: Dict[str, float] = {
    "COW": 12,
    "BULL": 12,
    "PIG": 6,
    "SHEEP": 8,
    "GOAT": 8,
    "HORSE": 24,
    "CHICKEN": 6,
}
DEFAULT_REPRODUCTION_AGE = 12

TARGET_WEIGHT_SCALE = 0.85

# (age in months, fraction of base value); linear between keys, flat outside.
PRICE_CURVES: Dict[str, List[Tuple[float, float]]] = {
    "COW": [(0, 0.25), (6, 0.45), (18, 1.0), (120, 1.0), (180, 0.6), (240, 0.3)],
    "BULL": [(0, 0.25), (6, 0.45), (24, 1.0), (120, 1.0), (180, 0.5), (240, 0.25)],
    "HORSE": [(0, 0.3), (12, 0.55), (36, 1.0), (240, 1.0), (300, 0.6), (360, 0.3)],
    "DEFAULT": [(0, 0.3), (12, 1.0), (84, 1.0), (144, 0.5), (200, 0.25)],
}

QUALITY_WEIGHT = 0.25
WEIGHT_QUALITY_WEIGHT = 0.6
PREGNANCY_PREMIUM = 0.25
LACTATION_PREMIUM = 0.15
MIN_VALUE_FRACTION = 0.05


def lookup_values(animal: Animal) -> Tuple[float, float, float]:
    sub_type = animal.sub_type.upper()
    if sub_type in BREED_VALUES:
        return BREED_VALUES[sub_type]
    prefix = animal.type.upper() or sub_type.split("_")[0]
    return TYPE_VALUES.get(prefix, DEFAULT_VALUES)


def curve_name(animal: Animal) -> str:
    kind = animal.type.upper()
    if kind == "HORSE":
        return "HORSE"
    if kind == "BULL" or "BULL" in animal.sub_type.upper():
        return "BULL"
    if kind == "COW":
        return "BULL" if animal.gender_key == "male" else "COW"
    return "DEFAULT"


def interpolate(curve: List[Tuple[float, float]], age: float) -> float:
    if age <= curve[0][0]:
        return curve[0][1]
    for (a0, v0), (a1, v1) in zip(curve, curve[1:]):
        if age <= a1:
            return v0 + (v1 - v0) * (age - a0) / (a1 - a0)
    return curve[-1][1]


def target_weight_for_age(animal: Animal, target_weight: float, min_weight: float) -> float:
    window = REPRODUCTION_AGE.get(animal.type.upper(), DEFAULT_REPRODUCTION_AGE)
    progress = min(max(animal.age, 0) / window, 1.0)
    return (min_weight + (target_weight - min_weight) * progress) * TARGET_WEIGHT_SCALE


def value_animal(animal: Animal) -> Valuation:
    base_value, target_weight, min_weight = lookup_values(animal)
    curve = curve_name(animal)

    age_fraction = interpolate(PRICE_CURVES[curve], animal.age)
    age_price = base_value * age_fraction
    sell_price = age_price

    expected_weight = target_weight_for_age(animal, target_weight, min_weight)
    weight_factor = 1 + (animal.weight - expected_weight) / expected_weight if expected_weight > 0 else 1.0
    health_factor = animal.health / 100
    meat_factor = animal.genetics.quality if animal.genetics else 1.0

    quality_adjustment = sell_price * QUALITY_WEIGHT * (meat_factor - 1)
    sell_price += quality_adjustment
    weight_quality_adjustment = sell_price * WEIGHT_QUALITY_WEIGHT / target_weight * animal.weight * (meat_factor - 1)
    sell_price += weight_quality_adjustment

    status_base = sell_price
    pregnancy_premium = status_base * PREGNANCY_PREMIUM if animal.is_pregnant else 0.0
    lactation_premium = status_base * LACTATION_PREMIUM if animal.is_lactating else 0.0
    sell_price += pregnancy_premium + lactation_premium

    if curve == "HORSE":
        riding_factor = animal.riding / 100
        fitness_factor = animal.fitness / 100
        dirt_factor = animal.dirt / 100
        condition = 0.3 + 0.5 * health_factor + 0.3 * riding_factor + 0.2 * fitness_factor - 0.2 * dirt_factor
        value = sell_price * condition * meat_factor * weight_factor
    else:
        value = sell_price * 0.6 + sell_price * 0.4 * weight_factor * 0.75 * health_factor

    value = max(value, sell_price * MIN_VALUE_FRACTION)
    minimum_value = int(round_half_up(base_value * MIN_VALUE_FRACTION))
    final = max(int(round_half_up(value)), minimum_value)

    return Valuation(
        value=final,
        breakdown={
            "baseValue": base_value,
            "priceCurve": curve,
            "ageFraction": round(age_fraction, 4),
            "agePrice": round(age_price, 2),
            "targetWeight": target_weight,
            "targetWeightForAge": round(expected_weight, 2),
            "weightFactor": round(weight_factor, 4),
            "healthFactor": round(health_factor, 4),
            "meatFactor": meat_factor,
            "qualityAdjustment": round(quality_adjustment, 2),
            "weightQualityAdjustment": round(weight_quality_adjustment, 2),
            "pregnancyPremium": round(pregnancy_premium, 2),
            "lactationPremium": round(lactation_premium, 2),
            "sellPrice": round(sell_price, 2),
            "minimumValue": minimum_value,
        },
    )


def value_group(animals: Iterable[Animal]) -> int:
    return sum(value_animal(a).value for a in animals)
