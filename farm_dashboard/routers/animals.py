from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import current_snapshot
from ..normalize import round_half_up
from ..pasture_warnings import pregnancy_details
from ..schemas import Animal, AnimalSummary, PregnancyDetails, Snapshot, Valuation
from ..valuation import value_animal

router = APIRouter(prefix="/animals", tags=["animals"])


def _get_animal(snapshot: Snapshot, animal_id: str) -> Animal:
    animal = next((a for a in snapshot.animals if a.id == animal_id), None)
    if not animal:
        raise HTTPException(404, "Animal not found")
    return animal


def _in_range(value: float, low: float | None, high: float | None) -> bool:
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


@router.get("/", response_model=list[Animal])
def list_animals(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=200, ge=1, le=1000),
    pasture_id: str | None = Query(default=None),
    type: str | None = Query(default=None),
    gender: str | None = Query(default=None),
    pregnant: bool | None = Query(default=None),
    lactating: bool | None = Query(default=None),
    age_min: float | None = Query(default=None),
    age_max: float | None = Query(default=None),
    weight_min: float | None = Query(default=None),
    weight_max: float | None = Query(default=None),
    health_min: float | None = Query(default=None),
    health_max: float | None = Query(default=None),
    # genetics bounds are percentages, 100 being an average animal
    metabolism_min: float | None = Query(default=None),
    metabolism_max: float | None = Query(default=None),
    fertility_min: float | None = Query(default=None),
    fertility_max: float | None = Query(default=None),
    quality_min: float | None = Query(default=None),
    quality_max: float | None = Query(default=None),
    productivity_min: float | None = Query(default=None),
    productivity_max: float | None = Query(default=None),
    sort: str | None = Query(default=None, pattern="^health$"),
    snapshot: Snapshot = Depends(current_snapshot),
):
    animals = snapshot.animals
    if pasture_id:
        animals = [a for a in animals if a.pasture_id == pasture_id]
    if type:
        animals = [a for a in animals if a.type.upper() == type.upper()]
    if gender:
        animals = [a for a in animals if a.gender_key == gender.lower()]
    if pregnant is not None:
        animals = [a for a in animals if a.is_pregnant == pregnant]
    if lactating is not None:
        animals = [a for a in animals if a.is_lactating == lactating]

    animals = [
        a for a in animals
        if _in_range(a.age, age_min, age_max)
        and _in_range(a.weight, weight_min, weight_max)
        and _in_range(a.health, health_min, health_max)
    ]

    genetics_bounds = {
        "metabolism": (metabolism_min, metabolism_max),
        "fertility": (fertility_min, fertility_max),
        "quality": (quality_min, quality_max),
        "productivity": (productivity_min, productivity_max),
    }
    genetics_bounds = {k: v for k, v in genetics_bounds.items() if v != (None, None)}
    if genetics_bounds:
        # animals without genetics cannot satisfy a genetics range
        animals = [
            a for a in animals
            if a.genetics is not None
            and all(
                _in_range(getattr(a.genetics, trait) * 100, low, high)
                for trait, (low, high) in genetics_bounds.items()
            )
        ]

    if sort == "health":
        animals = sorted(animals, key=lambda a: a.health, reverse=True)
    return animals[skip:skip + limit]


@router.get("/summary", response_model=AnimalSummary)
def animal_summary(
    pasture_id: str | None = Query(default=None),
    snapshot: Snapshot = Depends(current_snapshot),
):
    animals = snapshot.animals
    if pasture_id:
        animals = [a for a in animals if a.pasture_id == pasture_id]
    total = len(animals)
    avg_health = round_half_up(sum(a.health for a in animals) / total, 1) if total else 0
    return AnimalSummary(
        total=total,
        lactating=sum(1 for a in animals if a.is_lactating),
        pregnant=sum(1 for a in animals if a.is_pregnant),
        avg_health=avg_health,
    )


@router.get("/{animal_id}", response_model=Animal)
def get_animal(animal_id: str, snapshot: Snapshot = Depends(current_snapshot)):
    return _get_animal(snapshot, animal_id)


@router.get("/{animal_id}/value", response_model=Valuation)
def get_animal_value(animal_id: str, snapshot: Snapshot = Depends(current_snapshot)):
    return value_animal(_get_animal(snapshot, animal_id))


@router.get("/{animal_id}/pregnancy", response_model=PregnancyDetails)
def get_pregnancy(animal_id: str, snapshot: Snapshot = Depends(current_snapshot)):
    animal = _get_animal(snapshot, animal_id)
    if not animal.is_pregnant:
        raise HTTPException(400, f"Animal {animal_id} is not pregnant")
    return PregnancyDetails(**pregnancy_details(animal))
