"""Fan-out to every provider adapter and merge their partial forecasts."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date, datetime
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..cache import ForecastCache
from ..entities import (
    Coordinate,
    CredentialSet,
    DailyObservation,
    ForecastRequest,
    HourlyObservation,
    PartialForecast,
    UnifiedForecast,
    ValidationError,
)
from ..health import ProviderHealth
from ..providers import ForecastProvider, ProviderError, QuotaExceeded, default_providers


class AggregationError(RuntimeError):
    """Raised when no provider could contribute to the forecast."""

    def __init__(self, message: str, failures: Optional[Mapping[str, str]] = None) -> None:
        self.failures: Dict[str, str] = dict(failures or {})
        if self.failures:
            details = "; ".join(f"{name}: {cause}" for name, cause in self.failures.items())
            message = f"{message} ({details})"
        super().__init__(message)


def merge_partials(
    partials: Sequence[Tuple[str, PartialForecast]],
    failures: Optional[Mapping[str, str]] = None,
) -> UnifiedForecast:
    """Merge partial forecasts given in priority order.

    Entries are keyed by exact timestamp (hourly) or date (daily). The first
    provider to report a key wins the whole record; later providers only fill
    keys nobody reported before them.
    """
    hourly: Dict[datetime, HourlyObservation] = {}
    daily: Dict[date, DailyObservation] = {}
    sources: List[str] = []
    for name, partial in partials:
        for hour in partial.hourly:
            hourly.setdefault(hour.timestamp, hour)
        for day in partial.daily:
            daily.setdefault(day.date, day)
        if not partial.is_empty:
            sources.append(name)
    return UnifiedForecast(
        hourly=tuple(sorted(hourly.values(), key=lambda hour: hour.timestamp)),
        daily=tuple(sorted(daily.values(), key=lambda day: day.date)),
        sources=tuple(sources),
        failures=MappingProxyType(dict(failures or {})),
    )


class ForecastAggregator:
    def __init__(
        self,
        providers: Optional[Iterable[ForecastProvider]] = None,
        *,
        cache: Optional[ForecastCache] = None,
        health: Optional[ProviderHealth] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._providers: List[ForecastProvider] = list(providers) if providers is not None else default_providers()
        self.cache = cache
        self.health = health or ProviderHealth()
        self._log = logger or logging.getLogger(self.__class__.__name__)

    @property
    def providers(self) -> Tuple[ForecastProvider, ...]:
        return tuple(self._providers)

    # Public API ---------------------------------------------------------
    def get_integrated_forecast(
        self,
        coordinate: Coordinate,
        credentials: Optional[CredentialSet] = None,
        *,
        spot_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> UnifiedForecast:
        if not isinstance(coordinate, Coordinate):
            raise ValidationError("coordinate must be a Coordinate")
        if timeout is not None and timeout <= 0:
            raise ValidationError("timeout must be positive")
        request = ForecastRequest(
            coordinate=coordinate,
            credentials=credentials or CredentialSet(),
            spot_id=spot_id,
        )

        active = [provider for provider in self._providers if provider.supports(request)]
        skipped = [provider.name for provider in self._providers if provider not in active]
        if skipped:
            self._log.debug("Providers not configured for this request: %s", ", ".join(skipped))
        if not active:
            raise AggregationError("no provider is configured for this request")

        cache_key = ForecastCache.key_for(coordinate, spot_id, [provider.name for provider in active])
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._log.debug("Forecast cache hit for %s", cache_key)
                return cached

        partials, failures = self._collect(active, request, timeout)
        if not partials:
            raise AggregationError("all providers failed", failures)

        forecast = merge_partials(partials, failures)
        self._log.debug(
            "Merged %d hourly and %d daily entries from %s",
            len(forecast.hourly),
            len(forecast.daily),
            ", ".join(forecast.sources),
        )
        if self.cache is not None:
            self.cache.set(cache_key, forecast)
        return forecast

    # Helpers ------------------------------------------------------------
    def _collect(
        self,
        providers: Sequence[ForecastProvider],
        request: ForecastRequest,
        timeout: Optional[float],
    ) -> Tuple[List[Tuple[str, PartialForecast]], Dict[str, str]]:
        deadline = time.monotonic() + timeout if timeout is not None else None
        executor = ThreadPoolExecutor(max_workers=len(providers), thread_name_prefix="surfcast-provider")
        try:
            futures = [executor.submit(provider.collect, request, deadline=deadline) for provider in providers]
            _, pending = wait(futures, timeout=timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        partials: List[Tuple[str, PartialForecast]] = []
        failures: Dict[str, str] = {}
        for provider, future in zip(providers, futures):
            if future in pending:
                error: Optional[BaseException] = ProviderError(provider.name, "deadline exceeded")
            else:
                error = future.exception()
            if error is None:
                partials.append((provider.name, future.result()))
                self.health.record_success(provider.name)
                continue
            cause = error.message if isinstance(error, ProviderError) else repr(error)
            failures[provider.name] = cause
            self.health.record_failure(provider.name, cause)
            if isinstance(error, QuotaExceeded):
                self._log.warning("Provider %s quota exceeded", provider.name)
            elif isinstance(error, ProviderError):
                self._log.warning("Provider %s failed: %s", provider.name, error)
            else:
                self._log.error("Provider %s raised unexpectedly", provider.name, exc_info=error)
        return partials, failures


__all__ = ["AggregationError", "ForecastAggregator", "merge_partials"]
