"""Pydantic models for the raw provider payloads.

Adapters validate the decoded JSON against these models before normalizing,
so malformed payloads fail in one place and nothing downstream has to poke at
untyped dictionaries.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "OpenWeatherPayload",
    "StormglassPayload",
    "SurflinePayload",
    "WindyPayload",
]


def _ensure_utc(value: Any) -> datetime:
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)):
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        else:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"invalid timestamp {value!r}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# -- Stormglass ---------------------------------------------------------------
class StormglassHour(_Payload):
    time: datetime
    wave_height: Dict[str, Optional[float]] = Field(default_factory=dict, alias="waveHeight")
    wave_period: Dict[str, Optional[float]] = Field(default_factory=dict, alias="wavePeriod")
    wave_direction: Dict[str, Optional[float]] = Field(default_factory=dict, alias="waveDirection")
    wind_speed: Dict[str, Optional[float]] = Field(default_factory=dict, alias="windSpeed")
    wind_direction: Dict[str, Optional[float]] = Field(default_factory=dict, alias="windDirection")

    @field_validator("time", mode="before")
    @classmethod
    def _validate_time(cls, value: Any) -> datetime:
        return _ensure_utc(value)


class StormglassPayload(_Payload):
    hours: List[StormglassHour] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)


# -- OpenWeatherMap One Call --------------------------------------------------
class OpenWeatherTemp(_Payload):
    min: Optional[float] = None
    max: Optional[float] = None


class OpenWeatherCondition(_Payload):
    main: Optional[str] = None
    description: Optional[str] = None


class OpenWeatherDay(_Payload):
    dt: datetime
    temp: OpenWeatherTemp = Field(default_factory=OpenWeatherTemp)
    weather: List[OpenWeatherCondition] = Field(default_factory=list)
    wind_speed: Optional[float] = None
    wind_deg: Optional[float] = None
    pop: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("dt", mode="before")
    @classmethod
    def _validate_dt(cls, value: Any) -> datetime:
        return _ensure_utc(value)


class OpenWeatherHour(_Payload):
    dt: datetime
    wind_speed: Optional[float] = None
    wind_deg: Optional[float] = None

    @field_validator("dt", mode="before")
    @classmethod
    def _validate_dt(cls, value: Any) -> datetime:
        return _ensure_utc(value)


class OpenWeatherPayload(_Payload):
    hourly: List[OpenWeatherHour] = Field(default_factory=list)
    daily: List[OpenWeatherDay] = Field(default_factory=list)


# -- Windy point forecast -----------------------------------------------------
class WindyPayload(_Payload):
    ts: List[datetime] = Field(default_factory=list)
    units: Dict[str, Optional[str]] = Field(default_factory=dict)
    wind_u: Optional[List[Optional[float]]] = Field(default=None, alias="wind_u-surface")
    wind_v: Optional[List[Optional[float]]] = Field(default=None, alias="wind_v-surface")
    waves_height: Optional[List[Optional[float]]] = Field(default=None, alias="waves_height-surface")
    waves_period: Optional[List[Optional[float]]] = Field(default=None, alias="waves_period-surface")
    waves_direction: Optional[List[Optional[float]]] = Field(default=None, alias="waves_direction-surface")

    @field_validator("ts", mode="before")
    @classmethod
    def _validate_ts(cls, value: Any) -> List[datetime]:
        if not isinstance(value, list):
            raise ValueError("ts must be a list")
        # Windy reports epoch milliseconds
        return [_ensure_utc(item / 1000 if isinstance(item, (int, float)) else item) for item in value]


# -- Surfline -----------------------------------------------------------------
class SurflineRange(_Payload):
    min: Optional[float] = None
    max: Optional[float] = None


class SurflineSwell(_Payload):
    height: Optional[float] = None
    period: Optional[float] = None
    direction: Optional[float] = None


class SurflineWave(_Payload):
    timestamp: datetime
    surf: SurflineRange = Field(default_factory=SurflineRange)
    swells: List[SurflineSwell] = Field(default_factory=list)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _validate_timestamp(cls, value: Any) -> datetime:
        return _ensure_utc(value)


class SurflineData(_Payload):
    wave: List[SurflineWave] = Field(default_factory=list)


class SurflineUnits(_Payload):
    wave_height: Optional[str] = Field(default=None, alias="waveHeight")


class SurflineAssociated(_Payload):
    units: SurflineUnits = Field(default_factory=SurflineUnits)


class SurflinePayload(_Payload):
    data: SurflineData = Field(default_factory=SurflineData)
    associated: SurflineAssociated = Field(default_factory=SurflineAssociated)
