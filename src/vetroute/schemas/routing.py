"""Route planning request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from ..models.domain import CageClass, PlanningState, VanCapacityClass


class ClientModel(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    fraccionamiento: Optional[str] = Field(default=None, description="Delivery zone name.")


class PetModel(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    weight: Optional[float] = Field(default=None, ge=0, description="Pet weight in kg.")


class AppointmentModel(BaseModel):
    id: str
    scheduled_date: Optional[str] = Field(default=None, description="ISO date (YYYY-MM-DD).")
    scheduled_time: Optional[str] = Field(default=None, description="Display only.")
    logistics: Optional[str] = Field(
        default=None,
        description="Logistics type; only 'pickup' appointments are routed.",
    )
    client: Optional[ClientModel] = None
    pet: Optional[PetModel] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Union[str, int, None]) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return str(value)


class ZoneModel(BaseModel):
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class InventoryItemModel(BaseModel):
    name: str
    weight_kg: Optional[float] = Field(default=None, ge=0)
    cage_class: Optional[CageClass] = None


class RoutePlanRequest(BaseModel):
    tenant_id: Optional[str] = None
    date: Optional[str] = Field(default=None, description="Planning day; filters appointments when set.")
    van_capacity: VanCapacityClass = VanCapacityClass.MEDIUM
    clinic_location: Optional[Tuple[float, float]] = Field(
        default=None,
        description="(lat, lon) of the clinic. Falls back to the tenant record, then settings.",
    )
    appointments: List[AppointmentModel] = Field(default_factory=list)
    zones: Optional[List[ZoneModel]] = Field(
        default=None,
        description="Zone registry override. Loaded from the database when omitted.",
    )
    inventory: Optional[List[InventoryItemModel]] = Field(
        default=None,
        description="Inventory override for cage tare weights. Loaded from the database when omitted.",
    )


class ZoneWeightsRequest(BaseModel):
    tenant_id: Optional[str] = None
    clinic_location: Optional[Tuple[float, float]] = None
    zones: Optional[List[ZoneModel]] = None


class ZoneWeightsResponse(BaseModel):
    clinic_location: Tuple[float, float]
    weights: Dict[str, float]


class LoadStatisticsModel(BaseModel):
    stop_count: int
    total_pet_weight: float
    average_pet_weight: float
    cage_allocation: Dict[str, int]
    total_tare_weight: float
    total_weight: float


class CapacityCheckModel(BaseModel):
    van_capacity: VanCapacityClass
    max_pets: int
    max_weight_kg: float
    pet_overflow: int
    weight_overflow_kg: float
    within_capacity: bool


class LoadStatisticsResponse(BaseModel):
    load_statistics: LoadStatisticsModel
    capacity: CapacityCheckModel
    excluded_stops: List[str]


class OrderedStopModel(BaseModel):
    sequence: int
    id: str
    latitude: float
    longitude: float
    zone_name: Optional[str]
    zone_weight: float
    pet_weight_kg: float
    cage_class: CageClass
    scheduled_time: Optional[str]
    client_name: Optional[str]
    pet_name: Optional[str]


class ZoneOrderModel(BaseModel):
    name: str
    weight: float
    stop_count: int


class RoutePlanResponse(BaseModel):
    state: PlanningState
    notice: Optional[str] = None
    van_capacity: VanCapacityClass
    clinic_location: Tuple[float, float]
    stops: List[OrderedStopModel]
    load_statistics: LoadStatisticsModel
    capacity: CapacityCheckModel
    zone_order: List[ZoneOrderModel]
    total_distance_km: float
    estimated_minutes: int
    itinerary: List[str]
    metadata: dict
