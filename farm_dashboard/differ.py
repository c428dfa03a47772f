"""
Identity-keyed diffing of two snapshots.

Only changes that survive the significance filters below are reported;
parser jitter between two reads of the same save (small health drift,
implausible age jumps, type differences such as "85" vs 85.0) is dropped.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .normalize import normalize_bool, normalize_number, normalize_string, round_half_up
from .schemas import (
    Animal,
    AnimalUpdate,
    CountChange,
    LivestockChanges,
    Pasture,
    Snapshot,
    WarningChanges,
    WarningRef,
)

HEALTH_CHANGE_THRESHOLD = 15
AGE_MIN_INCREASE = 0.05
AGE_MAX_INCREASE = 0.5
FREE_ROAMING = "Free roaming"

# Deltas are compared at this precision so float noise cannot cross a threshold.
DELTA_PRECISION = 6

STATUS_HEALTH_BUCKET = 5
STATUS_HEALTH_THRESHOLD = 10


def index_by_id(animals: Iterable[Animal]) -> Dict[str, Animal]:
    out: Dict[str, Animal] = {}
    for a in animals:
        key = normalize_string(a.id)
        if key:
            out[key] = a
    return out


def _location(animal: Animal) -> str:
    return normalize_string(animal.pasture_id or animal.location)


def field_changes(old: Animal, new: Animal) -> Dict[str, Dict[str, object]]:
    """Surviving per-field changes; weight, genetics and the rest are never diffed."""
    changes: Dict[str, Dict[str, object]] = {}

    old_health = normalize_number(old.health)
    new_health = normalize_number(new.health)
    if round(abs(old_health - new_health), DELTA_PRECISION) > HEALTH_CHANGE_THRESHOLD:
        changes["health"] = {"old": int(round_half_up(old_health)), "new": int(round_half_up(new_health))}

    old_age = normalize_number(old.age)
    new_age = normalize_number(new.age)
    increase = round(new_age - old_age, DELTA_PRECISION)
    if AGE_MIN_INCREASE < increase <= AGE_MAX_INCREASE:
        changes["age"] = {"old": round_half_up(old_age, 2), "new": round_half_up(new_age, 2)}

    for attr, label in (("is_pregnant", "isPregnant"), ("is_lactating", "isLactating")):
        was = normalize_bool(getattr(old, attr))
        now = normalize_bool(getattr(new, attr))
        if was != now:
            changes[label] = {"old": was, "new": now}

    old_loc = _location(old)
    new_loc = _location(new)
    if old_loc != new_loc and (old_loc or new_loc):
        changes["location"] = {
            "old": old.location or old_loc or FREE_ROAMING,
            "new": new.location or new_loc or FREE_ROAMING,
        }

    return changes


def diff_animals(old: Sequence[Animal], new: Sequence[Animal]) -> LivestockChanges:
    old_map = index_by_id(old)
    new_map = index_by_id(new)

    added = [a for key, a in new_map.items() if key not in old_map]
    removed = [a for key, a in old_map.items() if key not in new_map]

    updated: List[AnimalUpdate] = []
    for key, after in new_map.items():
        before = old_map.get(key)
        if before is None:
            continue
        changes = field_changes(before, after)
        if changes:
            updated.append(AnimalUpdate(id=key, name=after.display_name, changes=changes))

    return LivestockChanges(added=added, removed=removed, updated=updated)


def _warning_keys(pastures: Sequence[Pasture]) -> Dict[Tuple[str, str, str], WarningRef]:
    keys: Dict[Tuple[str, str, str], WarningRef] = {}
    for p in pastures:
        for w in p.all_warnings:
            message = normalize_string(w.message)
            keys[(normalize_string(p.id), w.type, message)] = WarningRef(
                pasture_id=p.id,
                pasture_name=p.name,
                type=w.type,
                severity=w.severity,
                message=message,
            )
    return keys


def diff_warnings(old: Sequence[Pasture], new: Sequence[Pasture]) -> WarningChanges:
    old_keys = _warning_keys(old)
    new_keys = _warning_keys(new)
    return WarningChanges(
        new=[ref for key, ref in new_keys.items() if key not in old_keys],
        resolved=[ref for key, ref in old_keys.items() if key not in new_keys],
        total=sum(len(p.all_warnings) for p in new),
    )


def count_change(old: int, new: int) -> CountChange:
    return CountChange(old=old, new=new, changed=old != new)


def diff_statistics(old: Optional[Snapshot], new: Snapshot) -> Dict[str, CountChange]:
    def counts(s: Optional[Snapshot]) -> Tuple[int, int, int]:
        if s is None:
            return 0, 0, 0
        return len(s.animals), len(s.pastures), len(s.farms)

    old_counts = counts(old)
    new_counts = counts(new)
    return {
        name: count_change(o, n)
        for name, o, n in zip(("animals", "pastures", "farms"), old_counts, new_counts)
    }


def _status(animal: Animal) -> Tuple[bool, bool, int]:
    bucket = int(normalize_number(animal.health) // STATUS_HEALTH_BUCKET) * STATUS_HEALTH_BUCKET
    return normalize_bool(animal.is_pregnant), normalize_bool(animal.is_lactating), bucket


def has_significant_status_changes(old: Sequence[Animal], new: Sequence[Animal]) -> bool:
    """Cheap pre-check used before a full comparison of two live updates."""
    if len(old) != len(new):
        return True

    old_map = {k: _status(a) for k, a in index_by_id(old).items()}
    new_map = {k: _status(a) for k, a in index_by_id(new).items()}
    for key, before in old_map.items():
        after = new_map.get(key)
        if after is None:
            continue
        if (
            before[0] != after[0]
            or before[1] != after[1]
            or abs(before[2] - after[2]) >= STATUS_HEALTH_THRESHOLD
        ):
            return True
    return False


# Updates touching these fields are always shown for live feeds.
BREEDING_FIELDS = ("isPregnant", "isLactating", "isParent")


def _is_significant_update(update: AnimalUpdate) -> bool:
    if any(field in update.changes for field in BREEDING_FIELDS):
        return True
    health = update.changes.get("health")
    if health is None:
        return False
    delta = abs(normalize_number(health.get("new")) - normalize_number(health.get("old")))
    return delta >= HEALTH_CHANGE_THRESHOLD


def filter_significant_changes(livestock: LivestockChanges) -> LivestockChanges:
    """Keep every arrival and departure, but only breeding or large health updates."""
    return LivestockChanges(
        added=livestock.added,
        removed=livestock.removed,
        updated=[u for u in livestock.updated if _is_significant_update(u)],
    )
