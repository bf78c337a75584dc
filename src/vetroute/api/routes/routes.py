"""Pickup route planning endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse

from ...schemas.routing import (
    LoadStatisticsResponse,
    RoutePlanRequest,
    RoutePlanResponse,
    ZoneWeightsRequest,
    ZoneWeightsResponse,
)
from ...services.outputs.routing_formatter import plan_to_csv
from ...services.routing.service import build_plan, load_statistics_for, plan_route, zone_weights_for

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/plan", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
def plan(payload: RoutePlanRequest) -> RoutePlanResponse:
    """Order the day's pickup stops for one van.

    Optimizer outages are not errors: the response then carries the zone
    weight ordering and a notice for the operator.
    """
    try:
        return plan_route(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error planning pickup route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to plan route: {str(exc)}"
        ) from exc


@router.post("/plan/csv", response_class=PlainTextResponse, status_code=status.HTTP_200_OK)
def plan_csv(payload: RoutePlanRequest) -> PlainTextResponse:
    """Same planning run, exported as a CSV itinerary."""
    try:
        run = build_plan(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error exporting pickup route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to export route: {str(exc)}"
        ) from exc
    headers = {}
    if run.plan.notice:
        headers["X-Route-Notice"] = run.plan.notice
    return PlainTextResponse(plan_to_csv(run.plan.stops), media_type="text/csv", headers=headers)


@router.post("/load-statistics", response_model=LoadStatisticsResponse, status_code=status.HTTP_200_OK)
def load_statistics(payload: RoutePlanRequest) -> LoadStatisticsResponse:
    try:
        return load_statistics_for(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/zone-weights", response_model=ZoneWeightsResponse, status_code=status.HTTP_200_OK)
def zone_weights(payload: ZoneWeightsRequest) -> ZoneWeightsResponse:
    return zone_weights_for(payload)
