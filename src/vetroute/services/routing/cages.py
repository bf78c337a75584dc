"""Cage classification and load statistics for a pickup run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ...config import settings
from ...models.domain import CageClass, InventoryItem, Stop, VanCapacityClass

logger = logging.getLogger(__name__)

SMALL_CAGE_MAX_KG = 8.0
MEDIUM_CAGE_MAX_KG = 20.0

# Lower-cased substrings that identify a cage size in free-text inventory names.
CAGE_NAME_ALIASES: dict[CageClass, tuple[str, ...]] = {
    CageClass.SMALL: ("jaula pequeña", "jaula pequena", "jaula chica", "cage small", "small cage"),
    CageClass.MEDIUM: ("jaula mediana", "cage medium", "medium cage"),
    CageClass.LARGE: ("jaula grande", "cage large", "large cage"),
}


@dataclass(frozen=True, slots=True)
class VanLimits:
    max_pets: int
    max_weight_kg: float


VAN_CAPACITIES: dict[VanCapacityClass, VanLimits] = {
    VanCapacityClass.SMALL: VanLimits(max_pets=8, max_weight_kg=50.0),
    VanCapacityClass.MEDIUM: VanLimits(max_pets=15, max_weight_kg=100.0),
    VanCapacityClass.LARGE: VanLimits(max_pets=25, max_weight_kg=150.0),
}


@dataclass(frozen=True, slots=True)
class CageTareTable:
    small: float
    medium: float
    large: float

    @classmethod
    def defaults(cls) -> "CageTareTable":
        return cls(
            small=settings.default_tare_small_kg,
            medium=settings.default_tare_medium_kg,
            large=settings.default_tare_large_kg,
        )

    def tare_for(self, cage: CageClass) -> float:
        return getattr(self, cage.value)


@dataclass(frozen=True, slots=True)
class LoadStatistics:
    stop_count: int
    total_pet_weight: float
    average_pet_weight: float
    cage_allocation: dict[str, int]
    total_tare_weight: float
    total_weight: float

    @classmethod
    def empty(cls) -> "LoadStatistics":
        return cls(
            stop_count=0,
            total_pet_weight=0.0,
            average_pet_weight=0.0,
            cage_allocation={cage.value: 0 for cage in CageClass},
            total_tare_weight=0.0,
            total_weight=0.0,
        )


@dataclass(frozen=True, slots=True)
class CapacityCheck:
    van_capacity: VanCapacityClass
    max_pets: int
    max_weight_kg: float
    pet_overflow: int
    weight_overflow_kg: float
    within_capacity: bool = True


def classify_cage(pet_weight_kg: float) -> CageClass:
    if pet_weight_kg <= SMALL_CAGE_MAX_KG:
        return CageClass.SMALL
    if pet_weight_kg <= MEDIUM_CAGE_MAX_KG:
        return CageClass.MEDIUM
    return CageClass.LARGE


def resolved_pet_weight(stop: Stop, default: float | None = None) -> float:
    if stop.pet_weight_kg is not None:
        return float(stop.pet_weight_kg)
    return settings.default_pet_weight_kg if default is None else default


def _match_cage_class(item: InventoryItem) -> CageClass | None:
    if item.cage_class is not None:
        return CageClass(item.cage_class)
    name = (item.name or "").strip().lower()
    for cage, aliases in CAGE_NAME_ALIASES.items():
        if any(alias in name for alias in aliases):
            return cage
    return None


def resolve_tare_weights(
    items: Iterable[InventoryItem] | None,
    defaults: CageTareTable | None = None,
) -> CageTareTable:
    """Build the tare table from inventory, keeping the default for any size not found.

    An explicit ``cage_class`` on an item takes precedence over name matching.
    The first matching item with a known weight wins for each size.
    """
    base = defaults or CageTareTable.defaults()
    found: dict[CageClass, float] = {}
    for item in items or ():
        if item.weight_kg is None:
            continue
        cage = _match_cage_class(item)
        if cage is None or cage in found:
            continue
        found[cage] = float(item.weight_kg)

    for cage in CageClass:
        if cage not in found:
            logger.debug(f"No inventory item for {cage.value} cage; using default tare {base.tare_for(cage)} kg")

    return CageTareTable(
        small=found.get(CageClass.SMALL, base.small),
        medium=found.get(CageClass.MEDIUM, base.medium),
        large=found.get(CageClass.LARGE, base.large),
    )


def compute_load_statistics(
    stops: Sequence[Stop],
    tare_table: CageTareTable | None = None,
    default_pet_weight_kg: float | None = None,
) -> LoadStatistics:
    """Aggregate live and tare weight for the stops of one planning day."""
    if not stops:
        return LoadStatistics.empty()

    tares = tare_table or CageTareTable.defaults()
    allocation = {cage.value: 0 for cage in CageClass}
    total_pet_weight = 0.0
    for stop in stops:
        weight = resolved_pet_weight(stop, default_pet_weight_kg)
        total_pet_weight += weight
        allocation[classify_cage(weight).value] += 1

    total_tare_weight = sum(
        count * tares.tare_for(CageClass(cage)) for cage, count in allocation.items()
    )
    return LoadStatistics(
        stop_count=len(stops),
        total_pet_weight=total_pet_weight,
        average_pet_weight=total_pet_weight / len(stops),
        cage_allocation=allocation,
        total_tare_weight=total_tare_weight,
        total_weight=total_pet_weight + total_tare_weight,
    )


def check_van_capacity(stats: LoadStatistics, van_capacity: VanCapacityClass) -> CapacityCheck:
    """Compare the load with the van's limits. Overflow is reported, not enforced."""
    van_capacity = VanCapacityClass(van_capacity)
    limits = VAN_CAPACITIES[van_capacity]
    pet_overflow = max(0, stats.stop_count - limits.max_pets)
    weight_overflow = max(0.0, stats.total_weight - limits.max_weight_kg)
    within = pet_overflow == 0 and weight_overflow == 0.0
    if not within:
        logger.warning(
            f"Load exceeds {van_capacity.value} van: {stats.stop_count}/{limits.max_pets} pets, "
            f"{stats.total_weight:.1f}/{limits.max_weight_kg:.1f} kg"
        )
    return CapacityCheck(
        van_capacity=van_capacity,
        max_pets=limits.max_pets,
        max_weight_kg=limits.max_weight_kg,
        pet_overflow=pet_overflow,
        weight_overflow_kg=weight_overflow,
        within_capacity=within,
    )
