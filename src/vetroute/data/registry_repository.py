"""Tenant zone registry, cage inventory and clinic location lookups.

Reads come from Supabase when it is configured. Every lookup degrades to an
empty result so that route planning can continue on defaults.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..db.supabase import get_supabase_client
from ..models.domain import CageClass, Clinic, InventoryItem, ZoneRecord

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _zone_from_row(row: dict) -> ZoneRecord | None:
    name = str(row.get("name") or "").strip()
    if not name:
        return None
    latitude = _to_float(row.get("latitude"))
    longitude = _to_float(row.get("longitude"))
    coordinates = row.get("coordinates")
    if isinstance(coordinates, dict):
        latitude = _to_float(coordinates.get("lat", coordinates.get("latitude"))) if latitude is None else latitude
        longitude = _to_float(coordinates.get("lng", coordinates.get("longitude"))) if longitude is None else longitude
    return ZoneRecord(name=name, latitude=latitude, longitude=longitude)


def _inventory_from_row(row: dict) -> InventoryItem | None:
    name = str(row.get("name") or "").strip()
    if not name:
        return None
    cage_class = None
    raw_class = row.get("cage_class")
    if raw_class:
        try:
            cage_class = CageClass(str(raw_class).strip().lower())
        except ValueError:
            logger.debug(f"Ignoring unknown cage_class '{raw_class}' on inventory item '{name}'")
    weight = _to_float(row.get("weight_kg", row.get("weight")))
    return InventoryItem(name=name, weight_kg=weight, cage_class=cage_class)


class ZoneRegistry:
    """Read-only access to a tenant's fraccionamientos, inventory and clinic record."""

    def __init__(self, client_factory: Callable[[], Any] | None = None) -> None:
        self._client_factory = client_factory or get_supabase_client

    def _select(self, table: str, tenant_column: str, tenant_id: str | None) -> list[dict]:
        if not tenant_id:
            return []
        client = self._client_factory()
        if not client:
            return []
        try:
            response = client.table(table).select("*").eq(tenant_column, tenant_id).execute()
        except Exception as e:
            logger.warning(f"Failed to load '{table}' for tenant '{tenant_id}': {e}")
            return []
        return list(response.data or [])

    def get_zones(self, tenant_id: str | None) -> list[ZoneRecord]:
        zones: list[ZoneRecord] = []
        for row in self._select("fraccionamientos", "tenant_id", tenant_id):
            if row.get("is_active") is False:
                continue
            zone = _zone_from_row(row)
            if zone is not None:
                zones.append(zone)
        logger.info(f"Loaded {len(zones)} zones for tenant '{tenant_id}'")
        return zones

    def get_inventory(self, tenant_id: str | None) -> list[InventoryItem]:
        items = [
            item
            for item in (_inventory_from_row(row) for row in self._select("inventory_items", "tenant_id", tenant_id))
            if item is not None
        ]
        return items

    def get_clinic(self, tenant_id: str | None) -> Clinic | None:
        rows = self._select("tenants", "id", tenant_id)
        if not rows:
            return None
        row = rows[0]
        latitude = _to_float(row.get("latitude"))
        longitude = _to_float(row.get("longitude"))
        if latitude is None or longitude is None:
            return None
        return Clinic(tenant_id=tenant_id, latitude=latitude, longitude=longitude, name=row.get("name"))
