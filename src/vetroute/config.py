"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="VET_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Vet Pickup Route Planner API"
    api_prefix: str = "/api"
    clinic_latitude: float = Field(
        default=25.6866,
        ge=-90.0,
        le=90.0,
        description="Fallback clinic latitude when the tenant has no coordinates.",
    )
    clinic_longitude: float = Field(
        default=-100.3161,
        ge=-180.0,
        le=180.0,
        description="Fallback clinic longitude when the tenant has no coordinates.",
    )

    # Zone weight calibration, tuned for the metro area's coordinate spread.
    zone_weight_scale: float = Field(default=100.0, gt=0.0)
    zone_weight_min: float = Field(default=1.0)
    zone_weight_max: float = Field(default=10.9)
    default_zone_weight: float = Field(
        default=5.0,
        description="Weight used for stops whose zone is absent or unknown.",
    )

    default_pet_weight_kg: float = Field(default=5.0, ge=0.0)
    default_tare_small_kg: float = Field(default=2.5, ge=0.0)
    default_tare_medium_kg: float = Field(default=4.0, ge=0.0)
    default_tare_large_kg: float = Field(default=6.5, ge=0.0)

    optimizer_base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the external route optimization service.",
    )
    optimizer_timeout_seconds: float = Field(default=30.0, gt=0.0)
    optimizer_max_retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts before falling back to the weight sort.",
    )
    optimizer_backoff_seconds: float = Field(default=1.0, ge=0.0)

    minutes_per_km: float = Field(default=3.0, ge=0.0)
    minutes_per_stop: float = Field(default=5.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:5000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("optimizer_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text.rstrip("/") or None

    @property
    def clinic_location(self) -> tuple[float, float]:
        return (self.clinic_latitude, self.clinic_longitude)


settings = Settings()
