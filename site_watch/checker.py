# site_watch/checker.py
"""
Checker module: one HTTP health check per call, failures returned as outcomes.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_watch.errors import CheckError, ContentAnomaly, ProtocolError, TransportError
from site_watch.logger import get_logger
from site_watch.models import Resource, StatusOutcome, outcome_from_error

CheckFunc = Callable[[str], Awaitable[StatusOutcome]]

DEFAULT_MARKERS: tuple[str, ...] = ("under maintenance",)

log = get_logger("checker")


def apply_outcome(resource: Resource, outcome: StatusOutcome) -> None:
    """Reset the error counter on a healthy poll, otherwise bump it by one."""
    if outcome.healthy:
        resource.consecutive_errors = 0
    else:
        resource.consecutive_errors += 1


def _decode(body: bytes, charset: Optional[str]) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class HttpChecker:
    """GET-based health check with maintenance-page detection."""

    def __init__(
        self,
        session: ClientSession,
        maintenance_markers: Sequence[str] = DEFAULT_MARKERS,
        timeout: Optional[float] = None,
    ) -> None:
        self.session = session
        self._markers = tuple(m.lower() for m in maintenance_markers if m)
        self._timeout = ClientTimeout(total=timeout) if timeout else None

    async def __call__(self, url: str) -> StatusOutcome:
        return await self.check(url)

    async def check(self, url: str) -> StatusOutcome:
        """
        Poll *url* once.

        Never raises: transport failures, non-2xx statuses and maintenance
        pages all come back as a :class:`StatusOutcome`.
        """
        try:
            return await self._probe(url)
        except CheckError as exc:
            log.warning("Error %s %s", url, exc)
            return outcome_from_error(exc)

    async def _probe(self, url: str) -> StatusOutcome:
        kwargs = {"timeout": self._timeout} if self._timeout else {}
        try:
            async with self.session.get(url, raise_for_status=False, **kwargs) as resp:
                body = await resp.read()
                status, reason = resp.status, resp.reason or ""
                charset = resp.charset
        except asyncio.TimeoutError as exc:
            raise TransportError(url, f"timeout: {str(exc) or 'request timed out'}") from exc
        except (ClientError, OSError) as exc:
            raise TransportError(url, f"{type(exc).__name__}: {exc}") from exc

        if not 200 <= status < 300:
            raise ProtocolError(url, reason, status)

        marker = self._find_marker(_decode(body, charset))
        if marker is not None:
            raise ContentAnomaly(url, f"marker {marker!r} found", status)
        return StatusOutcome.ok(url, status, reason or "OK")

    def _find_marker(self, text: str) -> Optional[str]:
        lowered = text.lower()
        for marker in self._markers:
            if marker in lowered:
                return marker
        return None


__all__ = ["CheckFunc", "HttpChecker", "apply_outcome", "DEFAULT_MARKERS"]
