"""Domain models for pickup stops, delivery zones and cage inventory."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

LatLng = tuple[float, float]


class CageClass(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class VanCapacityClass(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class PlanningState(str, Enum):
    """Lifecycle of a single planning invocation."""

    IDLE = "idle"
    REQUESTING = "requesting"
    OPTIMIZED = "optimized"
    FALLBACK_SORTED = "fallback_sorted"
    RENDERED = "rendered"


@dataclass(slots=True)
class Stop:
    """A pickup appointment that has client coordinates and can be routed."""

    id: str
    latitude: float
    longitude: float
    zone_name: Optional[str] = None
    pet_weight_kg: Optional[float] = None
    scheduled_time: Optional[str] = None
    client_name: Optional[str] = None
    pet_name: Optional[str] = None
    address: Optional[str] = None

    @property
    def coordinates(self) -> LatLng:
        return (self.latitude, self.longitude)


@dataclass(slots=True)
class ZoneRecord:
    """A fraccionamiento (delivery neighborhood) with its reference coordinate."""

    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(slots=True)
class InventoryItem:
    """An inventory row that may describe a transport cage."""

    name: str
    weight_kg: Optional[float] = None
    cage_class: Optional[CageClass] = None


@dataclass(slots=True)
class Clinic:
    tenant_id: Optional[str]
    latitude: float
    longitude: float
    name: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def coordinates(self) -> LatLng:
        return (self.latitude, self.longitude)
