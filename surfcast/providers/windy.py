from __future__ import annotations

import math
from typing import Any, List, Optional, Tuple

from .base import PointProvider, ProviderError, safe_index
from ..entities import Coordinate, HourlyObservation, PartialForecast
from ..schemas import WindyPayload


def _wind_from_vector(u: Optional[float], v: Optional[float]) -> Tuple[Optional[float], Optional[float]]:
    """Convert u/v components (m/s) into speed and the direction the wind blows from."""
    if u is None or v is None:
        return None, None
    speed = math.hypot(u, v)
    direction = (270.0 - math.degrees(math.atan2(v, u))) % 360.0
    return round(speed, 2), round(direction, 1)


class WindyProvider(PointProvider):
    name = "windy"
    base_url = "https://api.windy.com/api/point-forecast/v2"
    parameters = ("wind", "waves")

    def __init__(self, base_url: Optional[str] = None, model: str = "gfs", **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.model = model

    def fetch(self, coordinate: Coordinate, credential: str, *, deadline: Optional[float] = None) -> Any:
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "model": self.model,
            "parameters": ",".join(self.parameters),
            "key": credential,
        }
        response = self._request("GET", self.base_url, params=params, deadline=deadline)
        return self._json(response)

    def normalize(self, raw: Any) -> PartialForecast:
        payload = self._parse(WindyPayload, raw)
        timestamps = payload.ts
        if not timestamps:
            raise ProviderError(self.name, "missing timestamps")
        hourly: List[HourlyObservation] = []
        for idx, ts in enumerate(timestamps):
            speed, direction = _wind_from_vector(
                safe_index(payload.wind_u, idx),
                safe_index(payload.wind_v, idx),
            )
            hourly.append(
                HourlyObservation(
                    timestamp=ts,
                    wave_height=safe_index(payload.waves_height, idx),
                    wave_period=safe_index(payload.waves_period, idx),
                    wave_direction=safe_index(payload.waves_direction, idx),
                    wind_speed=speed,
                    wind_direction=direction,
                    source=self.name,
                )
            )
        return PartialForecast(hourly=tuple(hourly))


__all__ = ["WindyProvider"]
