"""Optional reference-rate lookup.

The engine never performs I/O; callers that want a current benchmark rate
ask a ``ReferenceRateProvider`` before building ``GlobalRates``. Fetching is
best effort: any network, HTTP or parsing problem is logged and the last
known rate is returned instead, so a comparison can always be evaluated.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Optional

import httpx

from .config import EngineSettings
from .data_models import GlobalRates
from .utils import coerce_decimal

logger = logging.getLogger(__name__)


def _extract_rate(payload: Any) -> Decimal:
    """Accept ``{"rate": 4.02}``, ``{"value": ...}`` or a bare number."""
    if isinstance(payload, dict):
        payload = payload.get("rate", payload.get("value"))
    rate = coerce_decimal(payload, default=None)  # type: ignore[arg-type]
    if rate is None:
        raise ValueError(f"Response does not contain a numeric rate: {payload!r}")
    return rate


class ReferenceRateProvider:
    """Fetches the reference rate from a JSON endpoint, falling back on failure."""

    def __init__(
        self,
        url: str,
        fallback: Decimal,
        *,
        timeout: float = 5.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client
        self._held = fallback

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "ReferenceRateProvider":
        return cls(settings.rate_url, settings.reference_rate, timeout=settings.rate_timeout)

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    @property
    def held_rate(self) -> Decimal:
        return self._held

    def _fetch(self) -> Decimal:
        if self._client is not None:
            response = self._client.get(self._url, timeout=self._timeout)
            response.raise_for_status()
            return _extract_rate(response.json())
        with httpx.Client(timeout=self._timeout) as client:
            response = client.get(self._url)
            response.raise_for_status()
            return _extract_rate(response.json())

    def current(self) -> Decimal:
        """Return the freshest available rate; never raises."""
        if not self._url:
            return self._held
        try:
            rate = self._fetch()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Reference rate fetch from %s failed, keeping %s%%: %s", self._url, self._held, exc
            )
            return self._held
        logger.info("Reference rate updated to %s%%", rate)
        self._held = rate
        return rate


def refresh_global_rates(rates: GlobalRates, provider: ReferenceRateProvider) -> GlobalRates:
    """Return ``rates`` with its reference rate replaced by the provider's value.

    Without a configured endpoint the caller's rates are returned unchanged.
    """
    if not provider.enabled:
        return rates
    return replace(rates, reference_rate=provider.current())
