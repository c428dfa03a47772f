from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import current_snapshot
from ..pastures import find_pasture
from ..schemas import BirthWarning, Pasture, PastureOut, PastureWarning, Snapshot, Valuation
from ..valuation import value_animal

router = APIRouter(prefix="/pastures", tags=["pastures"])


def _get_pasture(snapshot: Snapshot, pasture_id: str) -> Pasture:
    pasture = find_pasture(snapshot.pastures, pasture_id)
    if not pasture:
        raise HTTPException(404, "Pasture not found")
    return pasture


@router.get("/", response_model=list[PastureOut])
def list_pastures(
    farm_id: str | None = Query(default=None),
    with_warnings: bool = False,
    snapshot: Snapshot = Depends(current_snapshot),
):
    out: list[PastureOut] = []
    for p in snapshot.pastures:
        if farm_id and p.farm_id != farm_id:
            continue
        if with_warnings and not p.all_warnings:
            continue
        out.append(PastureOut(
            id=p.id,
            name=p.name,
            farm_id=p.farm_id,
            capacity=p.capacity,
            animal_count=p.animal_count,
            avg_health=p.avg_health,
            warning_count=len(p.all_warnings),
            birth_warning_count=len(p.birth_warnings),
        ))
    return out


@router.get("/{pasture_id}", response_model=Pasture)
def get_pasture(pasture_id: str, snapshot: Snapshot = Depends(current_snapshot)):
    return _get_pasture(snapshot, pasture_id)


@router.get("/{pasture_id}/warnings", response_model=list[PastureWarning])
def get_pasture_warnings(
    pasture_id: str,
    severity: str | None = Query(default=None, pattern="^(info|warning|danger)$"),
    snapshot: Snapshot = Depends(current_snapshot),
):
    warnings = _get_pasture(snapshot, pasture_id).all_warnings
    if severity:
        warnings = [w for w in warnings if w.severity == severity]
    return warnings


@router.get("/{pasture_id}/birth-warnings", response_model=list[BirthWarning])
def get_birth_warnings(pasture_id: str, snapshot: Snapshot = Depends(current_snapshot)):
    return _get_pasture(snapshot, pasture_id).birth_warnings


@router.get("/{pasture_id}/value", response_model=Valuation)
def get_pasture_value(pasture_id: str, snapshot: Snapshot = Depends(current_snapshot)):
    pasture = _get_pasture(snapshot, pasture_id)
    values = {a.id: value_animal(a).value for a in pasture.animals}
    total = sum(values.values())
    return Valuation(
        value=total,
        breakdown={
            "animalCount": len(values),
            "averageValue": round(total / len(values)) if values else 0,
            "animals": values,
        },
    )
