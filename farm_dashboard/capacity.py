from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Optional, Sequence

from .schemas import CapacityInfo

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 20

# Calibrated against in-game capacity of custom fenced pastures.
ANIMALS_PER_SQ_METER = 0.01597
MIN_FENCE_CAPACITY = 5

# Checked in order: the first fragment found in the lowercased filename wins.
BUILDING_CAPACITIES = (
    (("cowbarnbig", "large"), 80),
    (("cowbarnmedium", "medium"), 45),
    (("cowbarnsmall", "small"), 15),
    (("chickencoop",), 30),
    (("pigbarn",), 25),
    (("sheepbarn",), 25),
    (("horsestable",), 10),
)

BUILDING_LABELS = (
    ("cowbarn", "Building Type (Cow Barn)"),
    ("pigbarn", "Building Type (Pig Barn)"),
    ("chickencoop", "Building Type (Chicken Coop)"),
    ("sheepbarn", "Building Type (Sheep Barn)"),
    ("horsestable", "Building Type (Horse Stable)"),
)


def estimate_building_capacity(filename: str | None) -> int:
    if not filename:
        return DEFAULT_CAPACITY
    lower = filename.lower()
    for fragments, capacity in BUILDING_CAPACITIES:
        if any(f in lower for f in fragments):
            return capacity
    return DEFAULT_CAPACITY


def polygon_area(points: Sequence[Sequence[float]]) -> float:
    """Shoelace area of an (x, z) polygon; the closing point is optional."""
    pts = [(float(p[0]), float(p[1])) for p in points]
    if len(pts) > 1 and pts[0] == pts[-1]:
        pts = pts[:-1]
    n = len(pts)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        x1, z1 = pts[i]
        x2, z2 = pts[(i + 1) % n]
        area += x1 * z2 - x2 * z1
    return abs(area) / 2


@lru_cache(maxsize=256)
def _fence_capacity(pasture_id: str, points: tuple) -> Optional[dict]:
    distinct = set(points)
    if len(distinct) < 3:
        logger.warning("Fence of %s has fewer than 3 distinct corners, ignoring", pasture_id)
        return None

    area = polygon_area(points)
    raw_capacity = math.floor(area * ANIMALS_PER_SQ_METER)
    capacity = max(raw_capacity, MIN_FENCE_CAPACITY)
    logger.debug("Fence area for %s: %.1f sq m -> %d animals", pasture_id, area, capacity)
    return {
        "capacity": capacity,
        "area": area,
        "segmentCount": len(points),
        "animalsPerSqMeter": ANIMALS_PER_SQ_METER,
        "rawCapacity": raw_capacity,
    }


def fence_capacity(pasture_id: str, points: Sequence[Sequence[float]]) -> Optional[dict]:
    """Capacity of a fenced area, cached per pasture and fence geometry."""
    key = tuple((float(p[0]), float(p[1])) for p in points)
    return _fence_capacity(pasture_id, key)


def _building_label(filename: str) -> Optional[str]:
    lower = filename.lower()
    for fragment, label in BUILDING_LABELS:
        if fragment in lower:
            return label
    return None


def resolve_capacity(
    pasture_id: str,
    filename: str = "",
    attribute: Optional[int] = None,
    fence_points: Sequence[Sequence[float]] = (),
) -> CapacityInfo:
    """
    Pick a pasture's capacity.

    Priority: explicit capacity attribute, then fenced-area geometry,
    then the building-type heuristic on the filename.
    """
    if attribute and attribute > 0:
        return CapacityInfo(
            capacity=int(attribute),
            source="attribute",
            source_label="Building Attribute",
            method={
                "type": "attribute",
                "description": "Read from the building's capacity attribute",
                "formula": f"Declared capacity = {int(attribute)} animals",
                "details": f"Building: {filename or 'Unknown'}",
            },
        )

    fence = fence_capacity(pasture_id, fence_points) if fence_points else None
    if fence:
        return CapacityInfo(
            capacity=fence["capacity"],
            source="fence_area",
            source_label="Custom Fence Area",
            method={
                "type": "fence_area",
                "description": "Calculated from custom fence perimeter using polygon area formula",
                "formula": (
                    f"{fence['area']:.1f} sq meters × {ANIMALS_PER_SQ_METER} animals/sq meter"
                    f" = {fence['rawCapacity']} animals (min {MIN_FENCE_CAPACITY})"
                ),
                "details": (
                    f"Shoelace formula applied to {fence['segmentCount']} fence segments. "
                    f"Final capacity: {fence['capacity']} animals"
                ),
                "area": fence["area"],
                "rawCapacity": fence["rawCapacity"],
            },
        )

    estimated = estimate_building_capacity(filename)
    label = _building_label(filename or "")
    return CapacityInfo(
        capacity=estimated,
        source="building_type" if label else "default",
        source_label=label or "Default Estimate",
        method={
            "type": "building_estimate",
            "description": "Estimated based on building type from filename",
            "formula": f"Standard building type → {estimated} animals",
            "details": f"Building: {filename or 'Unknown'} → Standard capacity for this building type",
        },
    )
