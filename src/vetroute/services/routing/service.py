"""Route planning orchestration."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Sequence

from ...config import settings
from ...data.registry_repository import ZoneRegistry
from ...models.domain import InventoryItem, LatLng, PlanningState, Stop, ZoneRecord
from ...schemas.routing import (
    AppointmentModel,
    CapacityCheckModel,
    LoadStatisticsModel,
    LoadStatisticsResponse,
    OrderedStopModel,
    RoutePlanRequest,
    RoutePlanResponse,
    ZoneOrderModel,
    ZoneWeightsRequest,
    ZoneWeightsResponse,
)
from ..geospatial import path_length_km
from ..outputs.routing_formatter import itinerary_lines, route_polyline
from .cages import (
    CapacityCheck,
    LoadStatistics,
    check_van_capacity,
    classify_cage,
    compute_load_statistics,
    resolve_tare_weights,
    resolved_pet_weight,
)
from .models import OrderedStop, RoutePlan, RouteSummary
from .optimizer import RouteOptimizer
from .zone_weights import ZoneWeights, compute_zone_weights, zone_order_summary, zone_weight_for

logger = logging.getLogger(__name__)

EMPTY_NOTICE = "Nothing to optimize: no pickup stops with coordinates for this day."


@dataclass(slots=True)
class PlanningRun:
    plan: RoutePlan
    load_statistics: LoadStatistics
    capacity: CapacityCheck
    zone_weights: ZoneWeights
    zone_order: list[dict]
    excluded_stops: list[str] = field(default_factory=list)


def _is_pickup(appointment: AppointmentModel) -> bool:
    if appointment.logistics is None:
        return True
    return appointment.logistics.strip().lower() == "pickup"


def _on_day(appointment: AppointmentModel, day: str | None) -> bool:
    if not day or not appointment.scheduled_date:
        return True
    return appointment.scheduled_date[:10] == day[:10]


def appointments_to_stops(
    appointments: Sequence[AppointmentModel],
    day: str | None = None,
) -> tuple[list[Stop], list[str]]:
    """Convert the day's pickup appointments into stops.

    Returns the stops and the ids of appointments left out for missing
    client coordinates.
    """
    stops: list[Stop] = []
    excluded: list[str] = []
    seen: set[str] = set()
    for appointment in appointments:
        if not _is_pickup(appointment) or not _on_day(appointment, day):
            continue
        if appointment.id in seen:
            raise ValueError(f"Duplicate appointment id '{appointment.id}' in planning request.")
        seen.add(appointment.id)

        client = appointment.client
        if client is None or client.latitude is None or client.longitude is None:
            excluded.append(appointment.id)
            continue
        pet = appointment.pet
        stops.append(
            Stop(
                id=appointment.id,
                latitude=client.latitude,
                longitude=client.longitude,
                zone_name=client.fraccionamiento or None,
                pet_weight_kg=pet.weight if pet else None,
                scheduled_time=appointment.scheduled_time,
                client_name=client.name,
                pet_name=pet.name if pet else None,
                address=client.address,
            )
        )

    if excluded:
        logger.info(f"Excluded {len(excluded)} appointments without client coordinates: {excluded}")
    return stops, excluded


def summarize_route(clinic: LatLng, stops: Sequence[Stop]) -> RouteSummary:
    if not stops:
        return RouteSummary(total_distance_km=0.0, estimated_minutes=0)
    path = [clinic, *(stop.coordinates for stop in stops), clinic]
    distance = path_length_km(path)
    minutes = round(distance * settings.minutes_per_km + len(stops) * settings.minutes_per_stop)
    return RouteSummary(total_distance_km=round(distance, 2), estimated_minutes=int(minutes))


def _resolve_clinic(
    requested: tuple[float, float] | None,
    tenant_id: str | None,
    registry: ZoneRegistry,
) -> LatLng:
    if requested is not None:
        return (float(requested[0]), float(requested[1]))
    clinic = registry.get_clinic(tenant_id)
    if clinic is not None:
        return clinic.coordinates
    return settings.clinic_location


def _resolve_zones(payload: RoutePlanRequest | ZoneWeightsRequest, registry: ZoneRegistry) -> list[ZoneRecord]:
    if payload.zones is not None:
        return [ZoneRecord(name=zone.name, latitude=zone.latitude, longitude=zone.longitude) for zone in payload.zones]
    return registry.get_zones(payload.tenant_id)


def _resolve_inventory(payload: RoutePlanRequest, registry: ZoneRegistry) -> list[InventoryItem]:
    if payload.inventory is not None:
        return [
            InventoryItem(name=item.name, weight_kg=item.weight_kg, cage_class=item.cage_class)
            for item in payload.inventory
        ]
    return registry.get_inventory(payload.tenant_id)


def build_plan(
    payload: RoutePlanRequest,
    *,
    optimizer: RouteOptimizer | None = None,
    registry: ZoneRegistry | None = None,
) -> PlanningRun:
    """Run one planning invocation: weights, load statistics, then stop ordering.

    Nothing is cached between invocations; every value is rebuilt from the
    request and the registry.
    """
    registry = registry or ZoneRegistry()
    stops, excluded = appointments_to_stops(payload.appointments, payload.date)
    clinic = _resolve_clinic(payload.clinic_location, payload.tenant_id, registry)
    zone_weights = compute_zone_weights(_resolve_zones(payload, registry), clinic)
    tare_table = resolve_tare_weights(_resolve_inventory(payload, registry))
    stats = compute_load_statistics(stops, tare_table)
    capacity = check_van_capacity(stats, payload.van_capacity)

    metadata: dict = {
        "tenant_id": payload.tenant_id,
        "date": payload.date,
        "excluded_stops": excluded,
        "zone_count": len(zone_weights),
    }

    if not stops:
        logger.info(f"No eligible pickup stops for tenant '{payload.tenant_id}' on {payload.date}")
        metadata["status"] = "empty"
        plan = RoutePlan(
            clinic=clinic,
            stops=[],
            state=PlanningState.IDLE,
            summary=summarize_route(clinic, []),
            notice=EMPTY_NOTICE,
            metadata=metadata,
        )
        return PlanningRun(
            plan=plan,
            load_statistics=stats,
            capacity=capacity,
            zone_weights=zone_weights,
            zone_order=[],
            excluded_stops=excluded,
        )

    optimizer = optimizer or RouteOptimizer()
    outcome = optimizer.optimize_route(
        stops,
        payload.van_capacity,
        zone_weights,
        clinic,
        tenant_id=payload.tenant_id,
        date=payload.date,
    )
    ordered = [
        OrderedStop(sequence=index, stop=stop, zone_weight=zone_weight_for(zone_weights, stop.zone_name))
        for index, stop in enumerate(outcome.stops, start=1)
    ]
    metadata["status"] = "complete"
    metadata["provider"] = "external" if outcome.state is PlanningState.OPTIMIZED else "zone_weight_fallback"
    metadata["map_overlays"] = {
        "routes": [
            {
                "route_id": f"pickup_{payload.date}" if payload.date else "pickup",
                "coordinates": route_polyline(clinic, ordered),
            }
        ]
    }
    summary = summarize_route(clinic, outcome.stops)
    logger.info(
        f"Planned {len(ordered)} stops ({outcome.state.value}): "
        f"{summary.total_distance_km} km, ~{summary.estimated_minutes} min, "
        f"{stats.total_weight:.1f} kg load"
    )
    plan = RoutePlan(
        clinic=clinic,
        stops=ordered,
        state=outcome.state,
        summary=summary,
        notice=outcome.notice,
        metadata=metadata,
    )
    return PlanningRun(
        plan=plan,
        load_statistics=stats,
        capacity=capacity,
        zone_weights=zone_weights,
        zone_order=zone_order_summary(outcome.stops, zone_weights),
        excluded_stops=excluded,
    )


def _stats_model(stats: LoadStatistics) -> LoadStatisticsModel:
    return LoadStatisticsModel(**asdict(stats))


def _capacity_model(capacity: CapacityCheck) -> CapacityCheckModel:
    return CapacityCheckModel(**asdict(capacity))


def plan_route(
    payload: RoutePlanRequest,
    *,
    optimizer: RouteOptimizer | None = None,
    registry: ZoneRegistry | None = None,
) -> RoutePlanResponse:
    run = build_plan(payload, optimizer=optimizer, registry=registry)
    plan = run.plan
    response = RoutePlanResponse(
        state=plan.state,
        notice=plan.notice,
        van_capacity=payload.van_capacity,
        clinic_location=plan.clinic,
        stops=[
            OrderedStopModel(
                sequence=item.sequence,
                id=item.stop.id,
                latitude=item.stop.latitude,
                longitude=item.stop.longitude,
                zone_name=item.stop.zone_name,
                zone_weight=item.zone_weight,
                pet_weight_kg=resolved_pet_weight(item.stop),
                cage_class=classify_cage(resolved_pet_weight(item.stop)),
                scheduled_time=item.stop.scheduled_time,
                client_name=item.stop.client_name,
                pet_name=item.stop.pet_name,
            )
            for item in plan.stops
        ],
        load_statistics=_stats_model(run.load_statistics),
        capacity=_capacity_model(run.capacity),
        zone_order=[ZoneOrderModel(**entry) for entry in run.zone_order],
        total_distance_km=plan.summary.total_distance_km,
        estimated_minutes=plan.summary.estimated_minutes,
        itinerary=itinerary_lines(plan.stops),
        metadata=plan.metadata,
    )
    logger.debug(f"Route planning state {plan.state.value} -> {PlanningState.RENDERED.value}")
    return response


def load_statistics_for(
    payload: RoutePlanRequest,
    *,
    registry: ZoneRegistry | None = None,
) -> LoadStatisticsResponse:
    registry = registry or ZoneRegistry()
    stops, excluded = appointments_to_stops(payload.appointments, payload.date)
    stats = compute_load_statistics(stops, resolve_tare_weights(_resolve_inventory(payload, registry)))
    return LoadStatisticsResponse(
        load_statistics=_stats_model(stats),
        capacity=_capacity_model(check_van_capacity(stats, payload.van_capacity)),
        excluded_stops=excluded,
    )


def zone_weights_for(
    payload: ZoneWeightsRequest,
    *,
    registry: ZoneRegistry | None = None,
) -> ZoneWeightsResponse:
    registry = registry or ZoneRegistry()
    clinic = _resolve_clinic(payload.clinic_location, payload.tenant_id, registry)
    weights = compute_zone_weights(_resolve_zones(payload, registry), clinic)
    return ZoneWeightsResponse(clinic_location=clinic, weights=dict(weights))
