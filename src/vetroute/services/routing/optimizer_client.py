"""HTTP client for the external route optimization service."""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import httpx

from ...config import settings
from ...models.domain import LatLng, Stop, VanCapacityClass
from .zone_weights import ZoneWeights

logger = logging.getLogger(__name__)


class OptimizerError(Exception):
    """The external optimizer could not produce a usable ordering."""


def build_appointment_payload(stop: Stop) -> dict:
    """Shape a stop the way the optimizer endpoint expects an appointment."""
    return {
        "id": stop.id,
        "scheduledTime": stop.scheduled_time,
        "client": {
            "name": stop.client_name,
            "address": stop.address,
            "latitude": stop.latitude,
            "longitude": stop.longitude,
            "fraccionamiento": stop.zone_name,
        },
        "pet": {
            "name": stop.pet_name,
            "weight": stop.pet_weight_kg,
        },
    }


def parse_ordered_ids(data: Any) -> list[str]:
    """Extract the ordered stop identifiers from an optimizer response body."""
    if not isinstance(data, dict) or "optimizedRoute" not in data:
        raise OptimizerError("Optimizer response missing 'optimizedRoute'.")
    route = data["optimizedRoute"]
    if not isinstance(route, list):
        raise OptimizerError("Optimizer 'optimizedRoute' is not a list.")

    ordered: list[str] = []
    for entry in route:
        if isinstance(entry, dict):
            identifier = entry.get("id")
        else:
            identifier = entry
        if identifier is None or isinstance(identifier, (dict, list, bool)):
            raise OptimizerError(f"Optimizer returned an entry without a usable id: {entry!r}")
        ordered.append(str(identifier))
    return ordered


class OptimizerClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.optimizer_base_url or "").rstrip("/") or None
        self.timeout = timeout if timeout is not None else settings.optimizer_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.optimizer_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.optimizer_backoff_seconds
        )
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def endpoint(self, tenant_id: str | None = None) -> str:
        if not self.base_url:
            raise OptimizerError("Route optimizer base URL is not configured.")
        if tenant_id:
            return f"{self.base_url}/api/optimize-route/{tenant_id}"
        return f"{self.base_url}/api/optimize-route"

    def optimize(
        self,
        stops: Sequence[Stop],
        van_capacity: VanCapacityClass,
        zone_weights: ZoneWeights,
        clinic: LatLng,
        tenant_id: str | None = None,
        date: str | None = None,
    ) -> list[str]:
        """Ask the optimizer for a visiting order and return the stop ids in that order.

        Raises:
            OptimizerError: on configuration, transport, status or payload problems.
        """
        url = self.endpoint(tenant_id)
        payload: dict[str, Any] = {
            "appointments": [build_appointment_payload(stop) for stop in stops],
            "vanCapacity": VanCapacityClass(van_capacity).value,
            "fraccionamientoWeights": dict(zone_weights),
            "clinicLocation": [clinic[0], clinic[1]],
        }
        if date:
            payload["date"] = date

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.post(url, json=payload)
                    response.raise_for_status()
                    return parse_ordered_ids(response.json())
                except httpx.HTTPStatusError as e:
                    error: Exception = OptimizerError(
                        f"Optimizer returned HTTP {e.response.status_code} for {url}"
                    )
                except httpx.TimeoutException as e:
                    error = OptimizerError(f"Optimizer request timed out: {e}")
                except httpx.HTTPError as e:
                    error = OptimizerError(f"Failed to reach optimizer at {self.base_url}: {e}")
                except ValueError as e:
                    error = OptimizerError(f"Optimizer returned invalid JSON: {e}")
                except OptimizerError as e:
                    error = e

                attempt += 1
                if attempt > self.max_retries:
                    raise error
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    f"Optimizer call failed, retrying in {wait_time:.1f}s "
                    f"(attempt {attempt}/{self.max_retries}): {error}"
                )
                time.sleep(wait_time)
        finally:
            client.close()


def check_health(base_url: str | None = None, timeout: float = 5.0) -> bool:
    """Return True when the optimizer host answers without a server error."""
    base = base_url or settings.optimizer_base_url
    if not base:
        return False
    try:
        response = httpx.get(base, timeout=timeout)
        return response.status_code < 500
    except httpx.HTTPError:
        return False
