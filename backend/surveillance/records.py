"""
Canonical rows produced by the source parsers.

Weeks are always in "YYYY-Www" form here; every numeric measurement is
optional (None means absent, not zero).
"""
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from .constants import NATIONAL_DEPARTMENT

T = TypeVar("T")


@dataclass(frozen=True)
class WastewaterRow:
    week: str
    station_id: str
    value: Optional[float]
    smoothed_value: Optional[float]


@dataclass(frozen=True)
class StationRow:
    sandre_id: str
    name: str
    commune: str
    population: int
    lat: float
    lng: float


@dataclass(frozen=True)
class ClinicalRow:
    week: str
    disease_id: str
    er_visit_rate: Optional[float]
    department: str = NATIONAL_DEPARTMENT


@dataclass(frozen=True)
class RougeoleRow:
    year: str
    department: str
    notification_rate: Optional[float]
    cases: Optional[float]
    population: Optional[float]
    label: str = ""


@dataclass
class Parsed(Generic[T]):
    """Rows accepted by a parser plus how many input records were dropped."""
    rows: List[T] = field(default_factory=list)
    dropped: int = 0
