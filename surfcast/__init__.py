"""Wave forecast aggregation and personalized surf scoring."""
from __future__ import annotations

from .entities import (
    BoardType,
    Coordinate,
    CredentialSet,
    Rating,
    SkillLevel,
    SpotScore,
    SurferProfile,
    UnifiedForecast,
    ValidationError,
)
from .providers import ProviderError
from .services.aggregator import AggregationError, ForecastAggregator
from .services.ranking import rank_spots
from .services.scoring import score_forecast

__version__ = "0.1.0"

__all__ = [
    "AggregationError",
    "BoardType",
    "Coordinate",
    "CredentialSet",
    "ForecastAggregator",
    "ProviderError",
    "Rating",
    "SkillLevel",
    "SpotScore",
    "SurferProfile",
    "UnifiedForecast",
    "ValidationError",
    "rank_spots",
    "score_forecast",
]
