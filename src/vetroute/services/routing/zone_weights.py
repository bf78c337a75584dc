"""Distance-based routing weights for delivery zones (fraccionamientos)."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from ...config import settings
from ...models.domain import LatLng, Stop, ZoneRecord
from ..geospatial import euclidean_degrees

logger = logging.getLogger(__name__)

ZoneWeights = Mapping[str, float]


def _has_coordinates(zone: ZoneRecord) -> bool:
    if zone.latitude is None or zone.longitude is None:
        return False
    return not (zone.latitude == 0 and zone.longitude == 0)


def weight_for_distance(
    distance: float,
    *,
    scale: float | None = None,
    min_weight: float | None = None,
    max_weight: float | None = None,
) -> float:
    scale = settings.zone_weight_scale if scale is None else scale
    low = settings.zone_weight_min if min_weight is None else min_weight
    high = settings.zone_weight_max if max_weight is None else max_weight
    return min(high, max(low, distance * scale))


def compute_zone_weights(
    zones: Iterable[ZoneRecord],
    clinic: LatLng,
    *,
    scale: float | None = None,
    min_weight: float | None = None,
    max_weight: float | None = None,
) -> ZoneWeights:
    """Map every zone name to a weight that grows with its distance from the clinic.

    The distance is planar in raw degrees and the result is clamped to
    ``[min_weight, max_weight]``. Zones without a usable coordinate sit at
    distance zero and receive the minimum weight. The returned mapping is
    read-only; it lives for a single planning run.
    """
    clinic_lat, clinic_lon = clinic
    weights: dict[str, float] = {}
    for zone in zones:
        if _has_coordinates(zone):
            distance = euclidean_degrees(zone.latitude, zone.longitude, clinic_lat, clinic_lon)
        else:
            logger.debug(f"Zone '{zone.name}' has no coordinates; using minimum weight")
            distance = 0.0
        weights[zone.name] = weight_for_distance(
            distance, scale=scale, min_weight=min_weight, max_weight=max_weight
        )
    return MappingProxyType(weights)


def zone_weight_for(
    weights: ZoneWeights,
    zone_name: str | None,
    default: float | None = None,
) -> float:
    """Weight of a stop's zone, falling back to the default for absent or unknown zones."""
    fallback = settings.default_zone_weight if default is None else default
    if not zone_name:
        return fallback
    return weights.get(zone_name, fallback)


def zone_order_summary(
    stops: Sequence[Stop],
    weights: ZoneWeights,
    default: float | None = None,
) -> list[dict]:
    """Zones touched by the stops, lightest first, with their stop counts."""
    counts: dict[str, int] = {}
    for stop in stops:
        name = stop.zone_name or "unknown"
        counts[name] = counts.get(name, 0) + 1

    summary = [
        {
            "name": name,
            "weight": zone_weight_for(weights, None if name == "unknown" else name, default),
            "stop_count": count,
        }
        for name, count in counts.items()
    ]
    summary.sort(key=lambda entry: entry["weight"])
    return summary
