# site_watch/models.py
"""
Data models for the SiteWatch polling pipeline.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from site_watch.errors import CheckError, ContentAnomaly, ProtocolError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Resource:
    """One monitored endpoint and its rolling error count.

    Owned by whichever pipeline stage currently holds it; never shared.
    """

    url: str
    consecutive_errors: int = 0


class OutcomeKind(str, enum.Enum):
    HEALTHY_OK = "ok"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    MAINTENANCE_DETECTED = "maintenance"


@dataclass(frozen=True, slots=True)
class StatusOutcome:
    """Classified result of one health check."""

    url: str
    kind: OutcomeKind
    status_code: Optional[int] = None
    message: str = ""
    checked_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def ok(cls, url: str, status_code: int = 200, message: str = "OK") -> StatusOutcome:
        return cls(url, OutcomeKind.HEALTHY_OK, status_code, message)

    @classmethod
    def http_error(cls, url: str, status_code: int, message: str = "") -> StatusOutcome:
        return cls(url, OutcomeKind.HTTP_ERROR, status_code, message)

    @classmethod
    def network_error(cls, url: str, message: str) -> StatusOutcome:
        return cls(url, OutcomeKind.NETWORK_ERROR, None, message)

    @classmethod
    def maintenance(cls, url: str, status_code: int, marker: str) -> StatusOutcome:
        return cls(url, OutcomeKind.MAINTENANCE_DETECTED, status_code, f"marker {marker!r} found")

    @property
    def healthy(self) -> bool:
        return self.kind is OutcomeKind.HEALTHY_OK

    def describe(self) -> str:
        """Human-readable status, e.g. ``200 OK`` or ``HTTP 503 Service Unavailable``."""
        if self.kind is OutcomeKind.HEALTHY_OK:
            return f"{self.status_code} {self.message}".strip()
        if self.kind is OutcomeKind.HTTP_ERROR:
            return f"HTTP {self.status_code} {self.message}".strip()
        if self.kind is OutcomeKind.MAINTENANCE_DETECTED:
            return f"maintenance (HTTP {self.status_code})"
        return f"network error: {self.message}"

    def as_dict(self) -> dict:
        return {
            "url": self.url,
            "kind": self.kind.value,
            "status_code": self.status_code,
            "message": self.message,
            "checked_at": self.checked_at.isoformat(),
            "healthy": self.healthy,
        }


def outcome_from_error(error: CheckError) -> StatusOutcome:
    """Convert a check error into the outcome value the pipeline carries."""
    if isinstance(error, ContentAnomaly):
        return StatusOutcome(
            error.url, OutcomeKind.MAINTENANCE_DETECTED, error.status, str(error)
        )
    if isinstance(error, ProtocolError):
        return StatusOutcome.http_error(error.url, error.status or 0, str(error))
    return StatusOutcome.network_error(error.url, str(error))


StateSnapshot = Mapping[str, StatusOutcome]


def freeze_snapshot(state: Mapping[str, StatusOutcome]) -> StateSnapshot:
    """Return a read-only point-in-time copy of *state*."""
    return MappingProxyType(dict(state))


@dataclass(frozen=True, slots=True)
class NotificationReport:
    """Unhealthy subset of one snapshot, handed to the notifier."""

    entries: StateSnapshot
    generated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_snapshot(cls, snapshot: StateSnapshot) -> NotificationReport:
        return cls(freeze_snapshot({u: o for u, o in snapshot.items() if not o.healthy}))

    def __len__(self) -> int:
        return len(self.entries)

    def lines(self) -> list[str]:
        return [f"{url} {outcome.describe()}" for url, outcome in self.entries.items()]


__all__ = [
    "Resource",
    "OutcomeKind",
    "StatusOutcome",
    "StateSnapshot",
    "NotificationReport",
    "freeze_snapshot",
    "outcome_from_error",
]
