from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Unbekannte Felder (id, created_at, ...) im Body werden von pydantic ignoriert.
# Infinity/NaN lässt json.loads durch, beim Rendern der Antwort knallt es dann.
_FINITE = ConfigDict(allow_inf_nan=False)


# ---- City ----
class CityIn(BaseModel):
    name: str = Field(..., min_length=1)


class CityUpdate(CityIn):
    pass


class CityOut(CityIn):
    id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---- Weather ----
class WeatherIn(BaseModel):
    model_config = _FINITE

    temperature: float
    humidity: float
    city_id: UUID


class WeatherUpdate(BaseModel):
    model_config = _FINITE

    temperature: float
    humidity: float
    city_id: Optional[UUID] = None  # leer -> bisherige Stadt bleibt

    @field_validator("city_id", mode="before")
    @classmethod
    def _norm_city_id(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class WeatherOut(WeatherIn):
    id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None


class HourlyAverage(BaseModel):
    bucket_time: datetime
    avg_temperature: float
    avg_humidity: float


# ---- Prediction ----
class PredictionIn(BaseModel):
    model_config = _FINITE

    city_id: UUID
    temperature: float
    humidity: float
    forecast_for: datetime


class PredictionUpdate(BaseModel):
    model_config = _FINITE

    temperature: float
    humidity: float
    forecast_for: datetime
    city_id: Optional[UUID] = None

    @field_validator("city_id", mode="before")
    @classmethod
    def _norm_city_id(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PredictionOut(PredictionIn):
    id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---- Sonstiges ----
class DeletedOut(BaseModel):
    deleted: str


class ErrorOut(BaseModel):
    error: str
