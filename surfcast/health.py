"""Per-provider failure counters, last error and last successful delivery.

Shared between requests; every update happens under a lock.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional


@dataclass(frozen=True)
class ProviderStatus:
    failures: int = 0
    last_error: Optional[str] = None
    last_success: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "failures": self.failures,
            "last_error": self.last_error,
            "last_success": self.last_success,
        }


class ProviderHealth:
    def __init__(self) -> None:
        self._statuses: Dict[str, ProviderStatus] = {}
        self._lock = Lock()

    def record_success(self, provider: str, when: Optional[datetime] = None) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        when = when or datetime.now(timezone.utc)
        with self._lock:
            current = self._statuses.get(provider, ProviderStatus())
            self._statuses[provider] = ProviderStatus(
                failures=current.failures,
                last_error=current.last_error,
                last_success=self._format_datetime(when),
            )

    def record_failure(self, provider: str, message: str) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        with self._lock:
            current = self._statuses.get(provider, ProviderStatus())
            self._statuses[provider] = ProviderStatus(
                failures=current.failures + 1,
                last_error=message,
                last_success=current.last_success,
            )

    def failures(self, provider: str) -> int:
        with self._lock:
            return self._statuses.get(provider, ProviderStatus()).failures

    def drain_failures(self) -> Dict[str, int]:
        """Return failure counters and reset them, keeping the other fields."""
        with self._lock:
            snapshot = {name: status.failures for name, status in self._statuses.items()}
            self._statuses = {
                name: ProviderStatus(last_error=status.last_error, last_success=status.last_success)
                for name, status in self._statuses.items()
            }
            return snapshot

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        with self._lock:
            return {name: status.as_dict() for name, status in self._statuses.items()}

    @staticmethod
    def _format_datetime(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()


__all__ = ["ProviderHealth", "ProviderStatus"]
