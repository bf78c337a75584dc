"""Single-vehicle stop ordering: external optimizer first, zone-weight sort as fallback."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Sequence

from ...models.domain import LatLng, PlanningState, Stop, VanCapacityClass
from .models import OptimizationOutcome
from .optimizer_client import OptimizerClient, OptimizerError
from .zone_weights import ZoneWeights, zone_weight_for

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Route optimization was unavailable; stops are ordered by zone weight."


def fallback_sort(
    stops: Sequence[Stop],
    zone_weights: ZoneWeights,
    default_weight: float | None = None,
) -> list[Stop]:
    """Order stops by ascending zone weight. Ties keep their input order."""
    return sorted(stops, key=lambda stop: zone_weight_for(zone_weights, stop.zone_name, default_weight))


def ensure_permutation(original: Sequence[Stop], ordered_ids: Sequence[str]) -> list[Stop]:
    """Map ordered ids back to stops, requiring every input stop exactly once."""
    by_id = {stop.id: stop for stop in original}
    if len(ordered_ids) != len(original):
        raise OptimizerError(
            f"Optimizer returned {len(ordered_ids)} stops for {len(original)} requested."
        )
    counts = Counter(ordered_ids)
    duplicates = sorted(identifier for identifier, count in counts.items() if count > 1)
    if duplicates:
        raise OptimizerError(f"Optimizer repeated stops: {', '.join(duplicates)}")
    unknown = sorted(identifier for identifier in counts if identifier not in by_id)
    if unknown:
        raise OptimizerError(f"Optimizer returned unknown stops: {', '.join(unknown)}")
    return [by_id[identifier] for identifier in ordered_ids]


class RouteOptimizer:
    """Orders one day's pickup stops for a single van.

    A single call goes to the external optimizer. Any failure there is absorbed
    and the stops are returned sorted by zone weight instead, together with an
    operator notice. The result is always a permutation of the input.
    """

    def __init__(
        self,
        client: OptimizerClient | None = None,
        default_zone_weight: float | None = None,
    ) -> None:
        self.client = client or OptimizerClient()
        self.default_zone_weight = default_zone_weight
        self.state = PlanningState.IDLE

    def _transition(self, state: PlanningState) -> None:
        logger.debug(f"Route planning state {self.state.value} -> {state.value}")
        self.state = state

    def optimize_route(
        self,
        stops: Sequence[Stop],
        van_capacity: VanCapacityClass,
        zone_weights: ZoneWeights,
        clinic: LatLng,
        tenant_id: str | None = None,
        date: str | None = None,
    ) -> OptimizationOutcome:
        self.state = PlanningState.IDLE
        if not stops:
            return OptimizationOutcome(stops=[], state=PlanningState.IDLE)

        self._transition(PlanningState.REQUESTING)
        try:
            ordered_ids = self.client.optimize(
                stops,
                van_capacity,
                zone_weights,
                clinic,
                tenant_id=tenant_id,
                date=date,
            )
            ordered = ensure_permutation(stops, ordered_ids)
        except OptimizerError as e:
            logger.warning(f"Route optimization failed: {e}. Using zone weight fallback.")
        except Exception as e:
            logger.error(f"Unexpected error during route optimization: {e}. Using zone weight fallback.")
        else:
            self._transition(PlanningState.OPTIMIZED)
            logger.info(f"Optimizer ordered {len(ordered)} stops")
            return OptimizationOutcome(stops=ordered, state=self.state)

        ordered = fallback_sort(stops, zone_weights, self.default_zone_weight)
        self._transition(PlanningState.FALLBACK_SORTED)
        return OptimizationOutcome(stops=ordered, state=self.state, notice=FALLBACK_NOTICE)
