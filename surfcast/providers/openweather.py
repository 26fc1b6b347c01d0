"""OpenWeatherMap One Call provider (general weather)."""
from __future__ import annotations

from typing import Any, List, Optional

from .base import PointProvider, ProviderError
from ..entities import Coordinate, DailyObservation, HourlyObservation, PartialForecast
from ..schemas import OpenWeatherPayload


class OpenWeatherProvider(PointProvider):
    """Daily outlook plus hourly wind from the One Call endpoint.

    OpenWeatherMap has no wave data, so its hourly entries only carry wind and
    are outranked by the marine providers whenever timestamps overlap.
    """

    name = "openweathermap"
    base_url = "https://api.openweathermap.org/data/2.5/onecall"
    exclude = ("minutely", "alerts")

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url

    def fetch(self, coordinate: Coordinate, credential: str, *, deadline: Optional[float] = None) -> Any:
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "exclude": ",".join(self.exclude),
            "units": "metric",
            "appid": credential,
        }
        response = self._request("GET", self.base_url, params=params, deadline=deadline)
        return self._json(response)

    def normalize(self, raw: Any) -> PartialForecast:
        payload = self._parse(OpenWeatherPayload, raw)
        if not payload.daily and not payload.hourly:
            raise ProviderError(self.name, "missing forecast data")
        daily: List[DailyObservation] = []
        for day in payload.daily:
            condition = day.weather[0] if day.weather else None
            daily.append(
                DailyObservation(
                    date=day.dt.date(),
                    temperature_min=day.temp.min,
                    temperature_max=day.temp.max,
                    weather=condition.main if condition else None,
                    weather_description=condition.description if condition else None,
                    wind_speed=day.wind_speed,
                    wind_direction=day.wind_deg,
                    precipitation_probability=day.pop,
                    source=self.name,
                )
            )
        hourly = [
            HourlyObservation(
                timestamp=hour.dt,
                wind_speed=hour.wind_speed,
                wind_direction=hour.wind_deg,
                source=self.name,
            )
            for hour in payload.hourly
        ]
        return PartialForecast(hourly=tuple(hourly), daily=tuple(daily))


__all__ = ["OpenWeatherProvider"]
