"""Provider adapters, listed in merge priority order."""
from __future__ import annotations

from typing import List, Optional

import requests

from .base import ForecastProvider, PointProvider, ProviderError, QuotaExceeded, RequestConfig, SpotProvider
from .openweather import OpenWeatherProvider
from .stormglass import StormglassProvider
from .surfline import SurflineProvider
from .windy import WindyProvider


def default_providers(
    request_config: Optional[RequestConfig] = None,
    session: Optional[requests.Session] = None,
) -> List[ForecastProvider]:
    """Marine specialists first, then the wave model, then general weather."""
    kwargs = {"request_config": request_config, "session": session}
    return [
        StormglassProvider(**kwargs),
        SurflineProvider(**kwargs),
        WindyProvider(**kwargs),
        OpenWeatherProvider(**kwargs),
    ]


__all__ = [
    "ForecastProvider",
    "OpenWeatherProvider",
    "PointProvider",
    "ProviderError",
    "QuotaExceeded",
    "RequestConfig",
    "SpotProvider",
    "StormglassProvider",
    "SurflineProvider",
    "WindyProvider",
    "default_providers",
]
