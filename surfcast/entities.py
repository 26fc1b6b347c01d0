from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class ValidationError(ValueError):
    """Raised when caller-supplied input is rejected before any network call."""


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class BoardType(str, Enum):
    SHORTBOARD = "shortboard"
    LONGBOARD = "longboard"
    FUNBOARD = "funboard"
    OTHER = "other"


class Rating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"
    BAD = "Bad"

    @property
    def rank(self) -> int:
        return _RATING_RANK[self]

    def bump(self) -> "Rating":
        """Return the next level up, saturating at Excellent."""
        index = _RATING_LADDER.index(self)
        if index < len(_RATING_LADDER) - 1:
            return _RATING_LADDER[index + 1]
        return self


_RATING_LADDER: Tuple[Rating, ...] = (
    Rating.BAD,
    Rating.POOR,
    Rating.FAIR,
    Rating.GOOD,
    Rating.EXCELLENT,
)
_RATING_RANK: Dict[Rating, int] = {rating: idx + 1 for idx, rating in enumerate(_RATING_LADDER)}


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        for name, value, limit in (("latitude", self.latitude, 90.0), ("longitude", self.longitude, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{name} must be a number")
            if not math.isfinite(value) or not -limit <= value <= limit:
                raise ValidationError(f"{name} must be within -{limit:g}..{limit:g}")


@dataclass(frozen=True)
class HourlyObservation:
    """Normalized hourly marine/weather observation.

    Units are the same for every provider:
    - wave height in metres
    - wave period in seconds
    - directions in degrees (the direction the wave/wind comes from)
    - wind speed in metres per second (m/s)
    """

    timestamp: datetime
    wave_height: Optional[float] = None
    wave_period: Optional[float] = None
    wave_direction: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    source: str = ""


@dataclass(frozen=True)
class DailyObservation:
    date: date
    temperature_min: Optional[float] = None
    temperature_max: Optional[float] = None
    weather: Optional[str] = None
    weather_description: Optional[str] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    precipitation_probability: Optional[float] = None
    source: str = ""


@dataclass(frozen=True)
class PartialForecast:
    """What a single provider contributes before merging."""

    hourly: Tuple[HourlyObservation, ...] = ()
    daily: Tuple[DailyObservation, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.hourly and not self.daily


@dataclass(frozen=True)
class UnifiedForecast:
    hourly: Tuple[HourlyObservation, ...] = ()
    daily: Tuple[DailyObservation, ...] = ()
    sources: Tuple[str, ...] = ()
    failures: Mapping[str, str] = field(default_factory=dict)

    def for_date(self, day: date) -> List[HourlyObservation]:
        """Hourly entries falling on ``day`` (UTC)."""
        return [hour for hour in self.hourly if hour.timestamp.astimezone(timezone.utc).date() == day]


@dataclass(frozen=True)
class SurferProfile:
    skill_level: Optional[SkillLevel] = None
    board_type: Optional[BoardType] = None
    board_length: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "skill_level", _parse_enum(SkillLevel, self.skill_level, "skill_level"))
        object.__setattr__(self, "board_type", _parse_enum(BoardType, self.board_type, "board_type"))
        if self.board_length is not None and self.board_length <= 0:
            raise ValidationError("board_length must be positive")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SurferProfile":
        """Build a profile from caller-supplied strings (e.g. query params)."""
        skill = data.get("skill_level") or data.get("skillLevel")
        board = data.get("board_type") or data.get("boardType")
        length = data.get("board_length", data.get("boardLength"))
        return cls(skill_level=skill, board_type=board, board_length=_parse_length(length))


@dataclass(frozen=True)
class ScoredObservation:
    observation: HourlyObservation
    score: int
    rating: Rating

    @property
    def timestamp(self) -> datetime:
        return self.observation.timestamp


@dataclass(frozen=True)
class SpotScore:
    """A precomputed rating for one spot at one forecast time."""

    spot_id: str
    forecast_time: datetime
    score: Rating
    difficulty: Optional[str] = None
    region_id: Optional[str] = None
    skill_level: Optional[SkillLevel] = None
    board_type: Optional[BoardType] = None

    def __post_init__(self) -> None:
        if self.difficulty is not None and not isinstance(self.difficulty, str):
            raise ValidationError(f"difficulty must be a string, got {self.difficulty!r}")
        object.__setattr__(self, "skill_level", _parse_enum(SkillLevel, self.skill_level, "skill_level"))
        object.__setattr__(self, "board_type", _parse_enum(BoardType, self.board_type, "board_type"))


@dataclass(frozen=True)
class RankedSpotScore:
    spot_id: str
    forecast_time: datetime
    score: Rating
    adjusted_score: Rating
    difficulty: Optional[str] = None
    region_id: Optional[str] = None
    skill_level: Optional[SkillLevel] = None
    board_type: Optional[BoardType] = None


@dataclass(frozen=True)
class CredentialSet:
    """Opaque provider tokens keyed by provider name."""

    tokens: Mapping[str, str] = field(default_factory=dict)

    ENV_VARS = {
        "stormglass": "STORMGLASS_API_KEY",
        "openweathermap": "OPENWEATHERMAP_API_KEY",
        "windy": "WINDY_API_KEY",
    }

    def get(self, provider: str) -> Optional[str]:
        token = self.tokens.get(provider)
        return token or None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CredentialSet":
        environ = os.environ if environ is None else environ
        tokens = {name: environ[var] for name, var in cls.ENV_VARS.items() if environ.get(var)}
        return cls(tokens=tokens)


@dataclass(frozen=True)
class ForecastRequest:
    coordinate: Coordinate
    credentials: CredentialSet = field(default_factory=CredentialSet)
    spot_id: Optional[str] = None


def _parse_enum(enum_cls, value: Any, name: str):
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"unknown {name} {value!r}; expected one of: {allowed}") from exc


def _parse_length(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"board_length must be a number, got {value!r}") from exc


__all__ = [
    "BoardType",
    "Coordinate",
    "CredentialSet",
    "DailyObservation",
    "ForecastRequest",
    "HourlyObservation",
    "PartialForecast",
    "RankedSpotScore",
    "Rating",
    "ScoredObservation",
    "SkillLevel",
    "SpotScore",
    "SurferProfile",
    "UnifiedForecast",
    "ValidationError",
]
