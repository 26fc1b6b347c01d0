from __future__ import annotations

from typing import Any, Dict, List, Optional

from .base import PointProvider, ProviderError
from ..entities import Coordinate, HourlyObservation, PartialForecast
from ..schemas import StormglassPayload


class StormglassProvider(PointProvider):
    """Marine-conditions provider; takes precedence when timestamps overlap."""

    name = "stormglass"
    base_url = "https://api.stormglass.io/v2/weather/point"
    params = ("waveHeight", "wavePeriod", "waveDirection", "windSpeed", "windDirection")

    def __init__(self, base_url: Optional[str] = None, source: str = "noaa", **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.source = source

    def fetch(self, coordinate: Coordinate, credential: str, *, deadline: Optional[float] = None) -> Any:
        params = {
            "lat": coordinate.latitude,
            "lng": coordinate.longitude,
            "params": ",".join(self.params),
            "source": self.source,
        }
        headers = {"Authorization": credential}
        response = self._request("GET", self.base_url, params=params, headers=headers, deadline=deadline)
        return self._json(response)

    def normalize(self, raw: Any) -> PartialForecast:
        payload = self._parse(StormglassPayload, raw)
        if not payload.hours:
            raise ProviderError(self.name, "missing hourly data")
        hourly: List[HourlyObservation] = []
        for hour in payload.hours:
            hourly.append(
                HourlyObservation(
                    timestamp=hour.time,
                    wave_height=self._pick(hour.wave_height),
                    wave_period=self._pick(hour.wave_period),
                    wave_direction=self._pick(hour.wave_direction),
                    wind_speed=self._pick(hour.wind_speed),
                    wind_direction=self._pick(hour.wind_direction),
                    source=self.name,
                )
            )
        return PartialForecast(hourly=tuple(hourly))

    def _pick(self, values: Dict[str, Optional[float]]) -> Optional[float]:
        return values.get(self.source)


__all__ = ["StormglassProvider"]
