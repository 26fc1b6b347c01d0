from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Type, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PayloadValidationError
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..entities import Coordinate, ForecastRequest, PartialForecast


PayloadT = TypeVar("PayloadT", bound=BaseModel)


class ProviderError(RuntimeError):
    """A single provider could not deliver usable data."""

    def __init__(self, provider: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.cause = cause


class QuotaExceeded(ProviderError):
    """Raised when a provider reports a quota/usage limit issue."""


@dataclass
class RequestConfig:
    timeout: float = 5.0
    retries: int = 0
    backoff_factor: float = 0.3
    status_forcelist: Iterable[int] = (500, 502, 503, 504)


class ForecastProvider:
    """Base class for provider adapters: HTTP plumbing plus the fetch/normalize contract."""

    name = "provider"
    base_url = ""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        self._log = logging.getLogger(self.__class__.__name__)

    # Contract -----------------------------------------------------------
    def supports(self, request: ForecastRequest) -> bool:
        return True

    def collect(self, request: ForecastRequest, *, deadline: Optional[float] = None) -> PartialForecast:
        raise NotImplementedError

    def normalize(self, raw: Any) -> PartialForecast:
        raise NotImplementedError

    # HTTP helpers -------------------------------------------------------
    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=config.retries,
            backoff_factor=config.backoff_factor,
            status_forcelist=tuple(config.status_forcelist),
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text)
            raise QuotaExceeded(self.name, "quota exceeded")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text)
            raise ProviderError(self.name, f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, *, deadline: Optional[float] = None, **kwargs) -> Response:
        timeout = self._timeout(deadline)
        try:
            response = self.session.request(method, url, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise ProviderError(self.name, "timeout", exc) from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderError(self.name, "request failed", exc) from exc
        return self._handle_response(response)

    def _timeout(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self.request_config.timeout
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ProviderError(self.name, "deadline exceeded")
        return min(self.request_config.timeout, remaining)

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise ProviderError(self.name, "invalid json", exc) from exc

    def _parse(self, model: Type[PayloadT], raw: Any) -> PayloadT:
        try:
            return model.model_validate(raw)
        except PayloadValidationError as exc:
            self._log.error("Malformed %s payload: %s", self.name, exc)
            raise ProviderError(self.name, "malformed payload", exc) from exc


class PointProvider(ForecastProvider):
    """Provider keyed by coordinate and authenticated with an opaque credential."""

    def supports(self, request: ForecastRequest) -> bool:
        return request.credentials.get(self.name) is not None

    def fetch(self, coordinate: Coordinate, credential: str, *, deadline: Optional[float] = None) -> Any:
        raise NotImplementedError

    def collect(self, request: ForecastRequest, *, deadline: Optional[float] = None) -> PartialForecast:
        credential = request.credentials.get(self.name)
        if credential is None:
            raise ProviderError(self.name, "missing credential")
        raw = self.fetch(request.coordinate, credential, deadline=deadline)
        return self.normalize(raw)


class SpotProvider(ForecastProvider):
    """Provider keyed by the provider's own spot identifier."""

    def supports(self, request: ForecastRequest) -> bool:
        return bool(request.spot_id)

    def fetch(self, spot_id: str, *, deadline: Optional[float] = None) -> Any:
        raise NotImplementedError

    def collect(self, request: ForecastRequest, *, deadline: Optional[float] = None) -> PartialForecast:
        if not request.spot_id:
            raise ProviderError(self.name, "missing spot identifier")
        raw = self.fetch(request.spot_id, deadline=deadline)
        return self.normalize(raw)


def safe_float(value: Optional[object]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def safe_index(values: Optional[list], index: int) -> Optional[float]:
    if not values:
        return None
    try:
        value = values[index]
    except IndexError:
        return None
    return safe_float(value)


__all__ = [
    "ForecastProvider",
    "PointProvider",
    "ProviderError",
    "QuotaExceeded",
    "RequestConfig",
    "SpotProvider",
    "safe_float",
    "safe_index",
]
