from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .normalize import normalize_bool, normalize_number, normalize_string


class CamelModel(BaseModel):
    """Records travel as camelCase JSON and read as snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# -----------------------------
# Animals
# -----------------------------

GENETIC_TRAITS = ("metabolism", "quality", "health", "fertility", "productivity")


class Genetics(CamelModel):
    metabolism: float = 1.0
    quality: float = 1.0
    health: float = 1.0
    fertility: float = 1.0
    productivity: float = 1.0

    @field_validator(*GENETIC_TRAITS, mode="before")
    @classmethod
    def _number(cls, v):
        return normalize_number(v)

    @classmethod
    def from_raw(cls, raw) -> Optional["Genetics"]:
        if not raw or not isinstance(raw, dict):
            return None
        return cls(**{trait: normalize_number(raw.get(trait)) for trait in GENETIC_TRAITS})


def animal_type_of(sub_type: str) -> str:
    return sub_type.split("_")[0] if sub_type else ""


class Animal(CamelModel):
    id: str = ""
    name: str = ""
    age: float = 0
    health: float = 0
    weight: float = 0
    gender: str = "unknown"
    sub_type: str = "Unknown"
    type: str = ""
    reproduction: float = 0
    is_pregnant: bool = False
    is_lactating: bool = False
    is_parent: bool = False
    location: str = ""
    location_type: str = ""
    pasture_id: str = ""
    genetics: Optional[Genetics] = None
    mother_id: str = "-1"
    father_id: str = "-1"
    farm_id: str = ""
    months_since_last_birth: float = 0
    variation: int = 1
    # Horse-only condition stats, 0-100
    riding: float = 0
    fitness: float = 0
    dirt: float = 0
    synthetic: bool = False

    # Callers may hand over raw feed values ("85 %", null, "true"); coerce them
    # the same way the adapters do so snapshots always compare like for like.
    @field_validator(
        "age", "health", "weight", "reproduction", "months_since_last_birth",
        "riding", "fitness", "dirt",
        mode="before",
    )
    @classmethod
    def _number(cls, v):
        return normalize_number(v)

    @field_validator("is_pregnant", "is_lactating", "is_parent", "synthetic", mode="before")
    @classmethod
    def _flag(cls, v):
        return normalize_bool(v)

    @field_validator("id", "name", "type", "location", "location_type", "pasture_id", "farm_id", mode="before")
    @classmethod
    def _text(cls, v):
        return normalize_string(v)

    @field_validator("gender", mode="before")
    @classmethod
    def _gender(cls, v):
        return normalize_string(v).lower() or "unknown"

    @field_validator("sub_type", mode="before")
    @classmethod
    def _sub_type(cls, v):
        return normalize_string(v) or "Unknown"

    @field_validator("mother_id", "father_id", mode="before")
    @classmethod
    def _parent_id(cls, v):
        return normalize_string(v) or "-1"

    @field_validator("variation", mode="before")
    @classmethod
    def _variation(cls, v):
        return int(normalize_number(v)) or 1

    @field_validator("genetics", mode="before")
    @classmethod
    def _genetics(cls, v):
        if isinstance(v, (Genetics, dict)):
            return v
        return None

    @model_validator(mode="after")
    def derive_type(self):
        if not self.type:
            self.type = animal_type_of(self.sub_type)
        return self

    @property
    def display_name(self) -> str:
        return self.name or f"Animal #{self.id}"

    @property
    def gender_key(self) -> str:
        return self.gender.lower()

    @classmethod
    def from_raw(cls, raw: dict) -> "Animal":
        """Build a canonical Animal from a loosely typed attribute map."""
        return cls.model_validate({**raw, "genetics": Genetics.from_raw(raw.get("genetics"))})


# -----------------------------
# Warnings
# -----------------------------

WARNING_TYPES = (
    "capacity",
    "food",
    "health",
    "production",
    "maintenance",
    "breeding",
    "age",
    "dairy_optimization",
)
SEVERITIES = ("info", "warning", "danger")


class PastureWarning(CamelModel):
    type: str = Field(pattern=r"^(capacity|food|health|production|maintenance|breeding|age|dairy_optimization)$")
    severity: str = Field(pattern=r"^(info|warning|danger)$")
    message: str
    affected_animals: Optional[List[Animal]] = None
    details: Optional[Dict[str, Any]] = None


class BirthWarning(CamelModel):
    animal_id: str
    animal_name: str
    type: str = Field(pattern=r"^(birth_due|breeding_risk)$")
    message: str
    months_remaining: Optional[int] = None
    age: Optional[float] = None


# -----------------------------
# Pastures
# -----------------------------

class ConditionReport(CamelModel):
    productivity: float = 0
    milk: float = 0
    straw: float = 0
    manure: float = 0


class FoodReport(CamelModel):
    total_capacity: float = 1000
    mixed_ration: float = 0
    hay: float = 0
    silage: float = 0
    grass: float = 0


class CapacityInfo(CamelModel):
    capacity: int
    source: str             # attribute / fence_area / building_type / default
    source_label: str
    method: Dict[str, Any] = Field(default_factory=dict)


class Placeable(CamelModel):
    """A livestock building or fenced pasture as read by an ingestion adapter."""

    unique_id: str
    name: str = ""
    farm_id: str = ""
    filename: str = ""
    capacity_attribute: Optional[int] = None
    fence_points: List[List[float]] = Field(default_factory=list)
    food: Optional[FoodReport] = None


class Pasture(CamelModel):
    id: str
    name: str
    farm_id: str = "Unknown"
    filename: str = ""
    capacity: int = 20
    capacity_info: Optional[CapacityInfo] = None
    animals: List[Animal] = Field(default_factory=list)
    animal_count: int = 0
    avg_health: float = 0
    birth_warnings: List[BirthWarning] = Field(default_factory=list)
    condition_report: ConditionReport = Field(default_factory=ConditionReport)
    food_report: Optional[FoodReport] = None
    all_warnings: List[PastureWarning] = Field(default_factory=list)


# -----------------------------
# Snapshots & reports
# -----------------------------

class GameTime(CamelModel):
    current_day: int = 1
    day_time: float = 0

    def key(self) -> tuple:
        return (self.current_day, self.day_time)

    def display(self) -> str:
        hours = int(self.day_time // 60)
        minutes = int(self.day_time % 60)
        return f"Day {self.current_day} - {hours:02d}:{minutes:02d}"


class Farm(CamelModel):
    id: str
    internal_id: str
    name: str
    is_default: bool = False


class Snapshot(CamelModel):
    animals: List[Animal] = Field(default_factory=list)
    pastures: List[Pasture] = Field(default_factory=list)
    farms: List[Farm] = Field(default_factory=list)
    game_time: Optional[GameTime] = None
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnimalUpdate(CamelModel):
    id: str
    name: str = ""
    changes: Dict[str, Dict[str, Any]]


class LivestockChanges(CamelModel):
    added: List[Animal] = Field(default_factory=list)
    removed: List[Animal] = Field(default_factory=list)
    updated: List[AnimalUpdate] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.updated)


class WarningRef(CamelModel):
    pasture_id: str
    pasture_name: str = ""
    type: str
    severity: str = ""
    message: str


class WarningChanges(CamelModel):
    new: List[WarningRef] = Field(default_factory=list)
    resolved: List[WarningRef] = Field(default_factory=list)
    total: int = 0


class CountChange(CamelModel):
    old: int
    new: int
    changed: bool


class GameTimeChange(CamelModel):
    old: Optional[GameTime] = None
    new: Optional[GameTime] = None
    changed: bool = False


class ChangeReport(CamelModel):
    livestock: LivestockChanges = Field(default_factory=LivestockChanges)
    warnings: WarningChanges = Field(default_factory=WarningChanges)
    statistics: Dict[str, CountChange] = Field(default_factory=dict)
    game_time: GameTimeChange = Field(default_factory=GameTimeChange)
    has_changes: bool = False


class Valuation(CamelModel):
    value: int
    breakdown: Dict[str, Any] = Field(default_factory=dict)


# -----------------------------
# Request / response bodies
# -----------------------------

class SavegameUpload(BaseModel):
    placeables_xml: str
    farms_xml: Optional[str] = None
    environment_xml: Optional[str] = None
    farm_id: Optional[str] = None


class SnapshotSummary(CamelModel):
    animal_count: int
    pasture_count: int
    farm_count: int
    warning_count: int
    game_time: Optional[GameTime] = None
    game_time_display: Optional[str] = None


class DashboardUpdate(CamelModel):
    snapshot: SnapshotSummary
    report: Optional[ChangeReport] = None
    # False when a live update carried no count, breeding or health-bucket change
    status_changed: bool = True


class CompareRequest(CamelModel):
    old: Snapshot
    new: Snapshot


class PastureOut(CamelModel):
    """Pasture listing row without the member records."""

    id: str
    name: str
    farm_id: str
    capacity: int
    animal_count: int
    avg_health: float
    warning_count: int
    birth_warning_count: int


class PregnancyDetails(CamelModel):
    animal_id: str
    gestation_months: int
    expected_offspring: str
    progress: float
    months_remaining: int
    due_soon: bool


class AnimalSummary(CamelModel):
    total: int
    lactating: int
    pregnant: int
    avg_health: float
