"""Plain-data renderings of forecasts, scores and rankings for API/CLI callers."""
from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List

from .entities import RankedSpotScore, ScoredObservation, UnifiedForecast


def _isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return _isoformat(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _record(obj: Any) -> Dict[str, Any]:
    return {key: _plain(value) for key, value in asdict(obj).items()}


def serialize_forecast(forecast: UnifiedForecast) -> Dict[str, Any]:
    return {
        "hourly": [_record(hour) for hour in forecast.hourly],
        "daily": [_record(day) for day in forecast.daily],
        "sources": list(forecast.sources),
        "failures": dict(forecast.failures),
    }


def serialize_scores(scores: Iterable[ScoredObservation]) -> List[Dict[str, Any]]:
    payload = []
    for item in scores:
        record = _record(item.observation)
        record["score"] = item.score
        record["rating"] = item.rating.value
        payload.append(record)
    return payload


def serialize_ranking(ranking: Iterable[RankedSpotScore]) -> List[Dict[str, Any]]:
    return [_record(entry) for entry in ranking]


__all__ = ["serialize_forecast", "serialize_ranking", "serialize_scores"]
