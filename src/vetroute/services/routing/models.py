"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import PlanningState, Stop


@dataclass(slots=True)
class OrderedStop:
    sequence: int
    stop: Stop
    zone_weight: float


@dataclass(slots=True)
class OptimizationOutcome:
    stops: List[Stop]
    state: PlanningState
    notice: Optional[str] = None


@dataclass(slots=True)
class RouteSummary:
    total_distance_km: float
    estimated_minutes: int


@dataclass(slots=True)
class RoutePlan:
    clinic: tuple[float, float]
    stops: List[OrderedStop]
    state: PlanningState
    summary: RouteSummary
    notice: Optional[str] = None
    metadata: dict = field(default_factory=dict)
