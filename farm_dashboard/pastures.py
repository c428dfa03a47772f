from __future__ import annotations

import logging
import re
from collections import OrderedDict
from typing import Dict, List, Optional, Sequence

from .capacity import resolve_capacity
from .normalize import round_half_up
from .pasture_warnings import condition_report, derive_birth_warnings, derive_warnings
from .schemas import Animal, CapacityInfo, Farm, FoodReport, GameTime, Pasture, Placeable, Snapshot

logger = logging.getLogger(__name__)

UNGROUPED_LOCATIONS = {"", "unknown"}


def average_health(animals: Sequence[Animal]) -> float:
    if not animals:
        return 0
    return round_half_up(sum(a.health for a in animals) / len(animals), 1)


def build_pasture(
    pasture_id: str,
    name: str,
    animals: Sequence[Animal],
    capacity_info: CapacityInfo,
    farm_id: str = "",
    filename: str = "",
    food: Optional[FoodReport] = None,
) -> Pasture:
    members = [a for a in animals if a.id]
    report = condition_report(members)
    pasture = Pasture(
        id=pasture_id,
        name=name,
        farm_id=farm_id or "Unknown",
        filename=filename,
        capacity=capacity_info.capacity,
        capacity_info=capacity_info,
        animals=members,
        animal_count=len(members),
        avg_health=average_health(members),
        birth_warnings=derive_birth_warnings(members),
        condition_report=report,
        food_report=food,
    )
    pasture.all_warnings = derive_warnings(pasture, members, report, food)
    return pasture


def pasture_id_for(location: str) -> str:
    return "pasture_" + re.sub(r"\s+", "_", location)


def build_pastures(animals: Sequence[Animal], placeables: Sequence[Placeable] = ()) -> List[Pasture]:
    """
    Group animals into pastures.

    Placeables from a save game or live feed define the pastures when present
    (only those holding at least one animal). Otherwise animals are grouped
    by their location name.
    """
    pastures: List[Pasture] = []

    if placeables:
        by_pasture: Dict[str, List[Animal]] = {}
        for a in animals:
            by_pasture.setdefault(a.pasture_id, []).append(a)

        for p in placeables:
            members = by_pasture.get(p.unique_id) or [
                a for a in animals if not a.pasture_id and a.location == (p.name or "Livestock Building")
            ]
            if not members:
                continue
            info = resolve_capacity(p.unique_id, p.filename, p.capacity_attribute, p.fence_points)
            pastures.append(build_pasture(
                p.unique_id,
                p.name or "Livestock Building",
                members,
                info,
                farm_id=p.farm_id,
                filename=p.filename,
                food=p.food,
            ))
    else:
        # keyed by pasture id where known, so same-named buildings stay apart
        groups: "OrderedDict[str, dict]" = OrderedDict()
        for a in animals:
            if a.location.lower() in UNGROUPED_LOCATIONS:
                continue
            group = groups.setdefault(a.pasture_id or a.location, {
                "id": a.pasture_id or pasture_id_for(a.location),
                "name": a.location,
                "farm_id": a.farm_id,
                "animals": [],
            })
            group["animals"].append(a)

        for group in groups.values():
            info = resolve_capacity(group["id"], group["name"])
            pastures.append(build_pasture(
                group["id"],
                group["name"],
                group["animals"],
                info,
                farm_id=group["farm_id"],
                food=None,
            ))

    logger.info("Built %d pastures from %d animals", len(pastures), len(animals))
    return pastures


def find_pasture(pastures: Sequence[Pasture], pasture_id: str) -> Optional[Pasture]:
    return next((p for p in pastures if p.id == pasture_id), None)


def build_snapshot(
    animals: Sequence[Animal],
    placeables: Sequence[Placeable] = (),
    farms: Sequence[Farm] = (),
    game_time: Optional[GameTime] = None,
) -> Snapshot:
    return Snapshot(
        animals=list(animals),
        pastures=build_pastures(animals, placeables),
        farms=list(farms),
        game_time=game_time,
    )
