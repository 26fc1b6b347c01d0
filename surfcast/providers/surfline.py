from __future__ import annotations

from typing import Any, List, Optional

from .base import ProviderError, SpotProvider
from ..entities import HourlyObservation, PartialForecast
from ..schemas import SurflinePayload, SurflineSwell, SurflineWave

FEET_TO_METRES = 0.3048


class SurflineProvider(SpotProvider):
    """Spot-keyed wave forecast; needs no credential."""

    name = "surfline"
    base_url = "https://services.surfline.com/kbyg/spots/forecasts/wave"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url

    def fetch(self, spot_id: str, *, deadline: Optional[float] = None) -> Any:
        response = self._request("GET", self.base_url, params={"spotId": spot_id}, deadline=deadline)
        return self._json(response)

    def normalize(self, raw: Any) -> PartialForecast:
        payload = self._parse(SurflinePayload, raw)
        waves = payload.data.wave
        if not waves:
            raise ProviderError(self.name, "missing wave data")
        in_feet = (payload.associated.units.wave_height or "").upper() == "FT"
        hourly: List[HourlyObservation] = []
        for wave in waves:
            swell = _dominant_swell(wave)
            hourly.append(
                HourlyObservation(
                    timestamp=wave.timestamp,
                    wave_height=self._surf_height(wave, in_feet),
                    wave_period=swell.period if swell else None,
                    wave_direction=swell.direction if swell else None,
                    source=self.name,
                )
            )
        return PartialForecast(hourly=tuple(hourly))

    def _surf_height(self, wave: SurflineWave, in_feet: bool) -> Optional[float]:
        bounds = [value for value in (wave.surf.min, wave.surf.max) if value is not None]
        if not bounds:
            return None
        height = sum(bounds) / len(bounds)
        if in_feet:
            height *= FEET_TO_METRES
        return round(height, 2)


def _dominant_swell(wave: SurflineWave) -> Optional[SurflineSwell]:
    swells = [swell for swell in wave.swells if swell.height]
    if not swells:
        return None
    return max(swells, key=lambda swell: swell.height)


__all__ = ["SurflineProvider"]
