"""Serializers for planned pickup routes."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ..routing.models import OrderedStop


def route_polyline(clinic: tuple[float, float], ordered: Sequence[OrderedStop]) -> list[list[float]]:
    """Map overlay path: clinic, each stop in order, back to the clinic."""
    if not ordered:
        return []
    points = [[clinic[0], clinic[1]]]
    points.extend([item.stop.latitude, item.stop.longitude] for item in ordered)
    points.append([clinic[0], clinic[1]])
    return points


def itinerary_lines(ordered: Sequence[OrderedStop]) -> list[str]:
    lines = []
    for item in ordered:
        stop = item.stop
        client = stop.client_name or stop.id
        label = f"{client} - {stop.pet_name}" if stop.pet_name else client
        zone = stop.zone_name or "sin fraccionamiento"
        prefix = f"{item.sequence}. "
        if stop.scheduled_time:
            prefix += f"[{stop.scheduled_time}] "
        lines.append(f"{prefix}{label} ({zone})")
    return lines


def plan_to_csv(ordered: Sequence[OrderedStop]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "stop_id",
        "client_name",
        "pet_name",
        "zone_name",
        "zone_weight",
        "pet_weight_kg",
        "scheduled_time",
        "latitude",
        "longitude",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for item in ordered:
        stop = item.stop
        writer.writerow(
            {
                "sequence": item.sequence,
                "stop_id": stop.id,
                "client_name": stop.client_name or "",
                "pet_name": stop.pet_name or "",
                "zone_name": stop.zone_name or "",
                "zone_weight": item.zone_weight,
                "pet_weight_kg": "" if stop.pet_weight_kg is None else stop.pet_weight_kg,
                "scheduled_time": stop.scheduled_time or "",
                "latitude": stop.latitude,
                "longitude": stop.longitude,
            }
        )
    return buffer.getvalue()
