"""
Adapters from upstream data shapes to canonical records.

Two sources are understood: the save-game XML files (farms.xml,
placeables.xml, environment.xml) and the JSON document the in-game mod
writes for the live feed, in both its vanilla (grouped clusters) and
enhanced-livestock (one record per animal) shapes.

When the live feed only carries aggregate counts, individual animals are
completed from a seeded generator so repeated reads of the same document
produce the same records. Fabricated animals are flagged `synthetic` and
never get pregnancy, lactation or parent status.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from xml.etree import ElementTree as ET

from .normalize import normalize_number, normalize_string
from .schemas import Animal, FoodReport, Farm, GameTime, Placeable

logger = logging.getLogger(__name__)

LIVESTOCK_BUILDING = "Livestock Building"

CAPACITY_ATTRIBUTES = (
    "maxAnimals", "maxAnimalCount", "capacity", "animalLimit", "maxNumAnimals", "numAnimalsMax",
)
PLACEABLE_CAPACITY_ATTRIBUTES = ("capacity", "maxAnimals", "animalCapacity")
CAPACITY_ELEMENTS = (
    "animalLimit", "maxAnimals", "capacity", "maxNumAnimals", "numAnimalsMax", "animalCapacity",
)

DEFAULT_FOOD_CAPACITY = 1000
FILL_TYPE_FOOD = {
    "TOTALMIXEDRATION": "mixed_ration",
    "FORAGE": "mixed_ration",
    "DRYGRASS_WINDROW": "hay",
    "HAY": "hay",
    "SILAGE": "silage",
    "GRASS_WINDROW": "grass",
    "GRASS": "grass",
}


class IngestError(ValueError):
    """Raised when an upstream document cannot be read at all."""


def _parse_xml(text: str, what: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise IngestError(f"XML parsing error in {what}: {e}") from e


def _int_or_none(value) -> Optional[int]:
    if value is None or normalize_string(value) == "":
        return None
    number = int(normalize_number(value))
    return number or None


# -----------------------------
# Save game XML
# -----------------------------

def parse_farms_xml(text: str) -> List[Farm]:
    """Player farms: farms with at least one player entry."""
    root = _parse_xml(text, "farms")
    farms: List[Farm] = []
    for el in root.iter("farm"):
        farm_id = el.get("farmId", "")
        players = el.find("players")
        if players is None or len(players) == 0:
            continue
        internal_id = farm_id
        stats_farm_id = el.find("statistics/farmId")
        if stats_farm_id is not None and stats_farm_id.text:
            internal_id = stats_farm_id.text.strip()
        farms.append(Farm(
            id=farm_id,
            internal_id=internal_id,
            name=el.get("name") or f"Farm {farm_id}",
            is_default=not farms,
        ))
    logger.info("Found %d player farms", len(farms))
    return farms


def parse_environment_xml(text: str) -> Optional[GameTime]:
    root = _parse_xml(text, "environment")

    def first(*tags):
        for tag in tags:
            el = root.find(f".//{tag}")
            if el is not None:
                return el
        return None

    day_time = first("dayTime", "currentDayTime", "time")
    current_day = first("currentDay", "day")

    if day_time is None and current_day is None:
        logger.info("No time elements found in environment data")
        return None

    return GameTime(
        current_day=int(normalize_number(current_day.text)) if current_day is not None else 1,
        day_time=normalize_number(day_time.text) if day_time is not None else 0,
    )


def _capacity_attribute(placeable: ET.Element, husbandry: ET.Element) -> Optional[int]:
    for attr in CAPACITY_ATTRIBUTES:
        if husbandry.get(attr):
            return _int_or_none(husbandry.get(attr))
    for attr in PLACEABLE_CAPACITY_ATTRIBUTES:
        if placeable.get(attr):
            return _int_or_none(placeable.get(attr))
    for tag in CAPACITY_ELEMENTS:
        el = husbandry.find(f".//{tag}")
        if el is not None and el.text:
            return _int_or_none(el.text)
    return None


def _fence_points(placeable: ET.Element) -> List[List[float]]:
    points: List[List[float]] = []
    fence = placeable.find("husbandryFence/fence")
    if fence is None:
        fence = placeable.find(".//husbandryFence//fence")
    if fence is None:
        return points
    for segment in fence.iter("segment"):
        start = segment.get("start")
        if not start:
            continue
        coords = start.split()
        if len(coords) < 3:
            continue
        # x and z; y is height
        points.append([normalize_number(coords[0]), normalize_number(coords[2])])
    return points


def _food_report(placeable: ET.Element) -> Optional[FoodReport]:
    food = placeable.find(".//husbandryFood")
    if food is None:
        return None
    amounts: Dict[str, float] = {}
    for level in food.iter("fillLevel"):
        key = FILL_TYPE_FOOD.get((level.get("fillType") or "").upper())
        if key:
            amounts[key] = amounts.get(key, 0) + normalize_number(level.get("fillLevel"))
    capacity = normalize_number(food.get("capacity")) or DEFAULT_FOOD_CAPACITY
    return FoodReport(total_capacity=capacity, **amounts)


def _animal_from_element(el: ET.Element, building: str, pasture_id: str) -> Animal:
    raw = dict(el.attrib)
    genetics = el.find("genetics")
    raw.update(
        location=building,
        locationType=LIVESTOCK_BUILDING,
        pastureId=pasture_id,
        genetics=dict(genetics.attrib) if genetics is not None else None,
    )
    return Animal.from_raw(raw)


def parse_placeables_xml(text: str, farm: Optional[Farm] = None) -> Tuple[List[Animal], List[Placeable]]:
    """
    Animals and livestock buildings from placeables.xml.

    Only buildings owned by `farm` (matched on its external id) are read;
    with no farm every livestock building is read.
    """
    root = _parse_xml(text, "placeables")
    animals: List[Animal] = []
    placeables: List[Placeable] = []

    for el in root.iter("placeable"):
        husbandry = el.find("husbandryAnimals")
        if husbandry is None:
            continue

        unique_id = el.get("uniqueId", "")
        name = el.get("name", "")
        farm_id = el.get("farmId", "")
        if farm is not None and str(farm_id) != str(farm.id):
            logger.debug("Skipping building %r owned by farm %s", name, farm_id)
            continue

        building = name or LIVESTOCK_BUILDING
        count = 0
        for cluster in husbandry.iter("clusters"):
            for animal_el in cluster.iter("animal"):
                if not animal_el.get("id"):
                    continue
                animals.append(_animal_from_element(animal_el, building, unique_id))
                count += 1

        if count == 0:
            continue

        placeables.append(Placeable(
            unique_id=unique_id,
            name=building,
            farm_id=farm_id,
            filename=el.get("filename", ""),
            capacity_attribute=_capacity_attribute(el, husbandry),
            fence_points=_fence_points(el),
            food=_food_report(el),
        ))

    logger.info("Read %d animals from %d livestock buildings", len(animals), len(placeables))
    return animals, placeables


# -----------------------------
# Live feed JSON
# -----------------------------

def hash_code(text: str) -> int:
    """32-bit string hash, matching the one the dashboard front end uses."""
    # hashed over UTF-16 code units, as charCodeAt sees them
    data = text.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def seeded_random(seed: int) -> Callable[[], float]:
    state = seed

    def next_value() -> float:
        nonlocal state
        state = (state * 9301 + 49297) % 233280
        return state / 233280

    return next_value


@dataclass
class LiveFeed:
    animals: List[Animal] = field(default_factory=list)
    placeables: List[Placeable] = field(default_factory=list)
    farms: List[Farm] = field(default_factory=list)
    game_time: Optional[GameTime] = None


def _husbandry_list(data) -> list:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("husbandries", "animals", "data"):
            if key in data:
                return data[key] if isinstance(data[key], list) else []
        return list(data.values())
    return []


def _animal_list(husbandry: dict) -> Optional[list]:
    for key in ("animals", "livestock", "animalList"):
        if isinstance(husbandry.get(key), list):
            return husbandry[key]
    return None


def _is_individual(group: dict) -> bool:
    num = group.get("numAnimals")
    return bool(
        group.get("id")
        and (num is None or normalize_number(num) <= 1)
        and (group.get("uniqueId") or group.get("age") is not None or group.get("weight") is not None)
    )


def _individual_animal(group: dict, husbandry: dict, animal_type: str) -> Animal:
    location = husbandry.get("name") or husbandry.get("buildingName") or ""
    raw = {
        "id": group.get("id"),
        "name": group.get("name") or f"{animal_type} {group.get('id')}",
        "age": group.get("age") or group.get("ageInMonths") or 24,
        "health": group.get("health") or group.get("healthStatus") or 100,
        "weight": group.get("weight") or group.get("currentWeight") or 350,
        "gender": group.get("gender") or group.get("sex") or "female",
        "subType": animal_type,
        "reproduction": group.get("reproduction"),
        "isLactating": group.get("isLactating") or group.get("lactating") or False,
        "isPregnant": group.get("isPregnant") or group.get("pregnant") or False,
        "isParent": group.get("isParent") or group.get("hasOffspring") or False,
        "location": location,
        "locationType": "pasture",
        "pastureId": husbandry.get("id") or husbandry.get("buildingId"),
        "farmId": husbandry.get("ownerFarmId") or husbandry.get("farmId"),
        "genetics": group.get("genetics"),
        "motherId": group.get("motherId"),
        "fatherId": group.get("fatherId"),
        "riding": group.get("riding"),
        "fitness": group.get("fitness"),
        "dirt": group.get("dirt"),
    }
    return Animal.from_raw(raw)


def _grouped_animals(group: dict, husbandry: dict, animal_type: str) -> List[Animal]:
    num_animals = int(normalize_number(group.get("numAnimals") or group.get("count") or 1))
    is_dairy_cow = "COW" in animal_type.upper()
    if is_dairy_cow:
        male_count = max(1, math.floor(num_animals * 0.04))
    else:
        male_count = math.floor(num_animals * 0.25)

    husbandry_id = normalize_string(husbandry.get("id"))
    location = husbandry.get("name") or husbandry.get("buildingName") or ""
    out: List[Animal] = []
    for i in range(num_animals):
        animal_id = f"{husbandry_id}-{animal_type}-{i}"
        rand = seeded_random(hash_code(animal_id))
        age = group.get("age") or 12 + math.floor(rand() * 36)
        group_health = normalize_number(group.get("health"))
        health = group_health if group_health > 0 else 85 + rand() * 15
        weight = group.get("weight") or 250 + rand() * 200
        out.append(Animal(
            id=animal_id,
            name=f"{animal_type} {i + 1}",
            age=normalize_number(age),
            health=health,
            weight=normalize_number(weight),
            gender="male" if i < male_count else "female",
            sub_type=animal_type,
            location=location,
            location_type="pasture",
            pasture_id=normalize_string(husbandry.get("id") or husbandry.get("buildingId")),
            farm_id=normalize_string(husbandry.get("ownerFarmId") or husbandry.get("farmId")),
            synthetic=True,
        ))
    return out


def _counted_animals(husbandry: dict, count: int) -> List[Animal]:
    husbandry_id = normalize_string(husbandry.get("id"))
    out: List[Animal] = []
    for i in range(count):
        animal_id = f"{husbandry_id}-{i}"
        rand = seeded_random(hash_code(animal_id))
        age = math.floor(rand() * 48) + 12
        health = 85 + rand() * 15
        weight = 250 + rand() * 200
        gender = "female" if rand() > 0.5 else "male"
        out.append(Animal(
            id=animal_id,
            name=f"Animal {i + 1}",
            age=age,
            health=health,
            weight=weight,
            gender=gender,
            sub_type="Unknown",
            location=normalize_string(husbandry.get("name")),
            location_type="pasture",
            pasture_id=husbandry_id,
            farm_id=normalize_string(husbandry.get("ownerFarmId")),
            synthetic=True,
        ))
    return out


def _husbandry_placeable(husbandry: dict) -> Optional[Placeable]:
    unique_id = normalize_string(husbandry.get("id") or husbandry.get("buildingId"))
    if not unique_id:
        return None
    food = husbandry.get("food")
    food_report = None
    if isinstance(food, dict):
        food_report = FoodReport(
            total_capacity=normalize_number(food.get("totalCapacity")) or DEFAULT_FOOD_CAPACITY,
            mixed_ration=normalize_number(food.get("mixedRation", food.get("totalMixedRation"))),
            hay=normalize_number(food.get("hay")),
            silage=normalize_number(food.get("silage")),
            grass=normalize_number(food.get("grass")),
        )
    capacity = None
    for key in ("maxNumAnimals", "capacity", "maxAnimals"):
        if husbandry.get(key) is not None:
            capacity = _int_or_none(husbandry.get(key))
            break
    return Placeable(
        unique_id=unique_id,
        name=normalize_string(husbandry.get("name") or husbandry.get("buildingName")),
        farm_id=normalize_string(husbandry.get("ownerFarmId") or husbandry.get("farmId")),
        filename=normalize_string(husbandry.get("filename")),
        capacity_attribute=capacity,
        food=food_report,
    )


def parse_live_animals(data) -> Tuple[List[Animal], List[Placeable]]:
    animals: List[Animal] = []
    placeables: List[Placeable] = []

    for husbandry in _husbandry_list(data):
        if not isinstance(husbandry, dict):
            continue
        group_list = _animal_list(husbandry)
        before = len(animals)

        if group_list is not None:
            for group in group_list:
                if not isinstance(group, dict):
                    continue
                animal_type = normalize_string(
                    group.get("subType") or group.get("type") or group.get("animalType")
                ) or "Unknown"
                if _is_individual(group):
                    animals.append(_individual_animal(group, husbandry, animal_type))
                else:
                    animals.extend(_grouped_animals(group, husbandry, animal_type))
        else:
            count = int(normalize_number(husbandry.get("animalCount") or husbandry.get("numAnimals")))
            if count > 0:
                animals.extend(_counted_animals(husbandry, count))

        if len(animals) > before:
            placeable = _husbandry_placeable(husbandry)
            if placeable is not None:
                placeables.append(placeable)

    if not animals:
        logger.warning("No animals found in live feed data")
    return animals, placeables


def parse_game_time(data) -> Optional[GameTime]:
    if not isinstance(data, dict):
        return None
    day = data.get("currentDay", data.get("day"))
    time = data.get("dayTime", data.get("time"))
    if day is None and time is None:
        return None
    return GameTime(
        current_day=int(normalize_number(day)) if day is not None else 1,
        day_time=normalize_number(time),
    )


def parse_farm_info(data) -> List[Farm]:
    items = data if isinstance(data, list) else [data] if isinstance(data, dict) else []
    farms: List[Farm] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        farm_id = normalize_string(item.get("id", item.get("farmId")))
        if not farm_id:
            continue
        farms.append(Farm(
            id=farm_id,
            internal_id=normalize_string(item.get("internalId")) or farm_id,
            name=normalize_string(item.get("name")) or f"Farm {farm_id}",
            is_default=not farms,
        ))
    return farms


def parse_live_feed(document: dict) -> LiveFeed:
    """Read the relevant parts of a live-feed document; everything else is ignored."""
    if not isinstance(document, dict):
        raise IngestError("Live feed document must be a JSON object")
    # Relay broadcasts wrap the document as {"type": "data", "data": {...}}
    if document.get("type") == "data" and isinstance(document.get("data"), dict):
        document = document["data"]

    animals, placeables = parse_live_animals(document.get("animals"))
    return LiveFeed(
        animals=animals,
        placeables=placeables,
        farms=parse_farm_info(document.get("farmInfo")),
        game_time=parse_game_time(document.get("gameTime")),
    )
