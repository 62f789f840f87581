"""Current average mortgage rates from the API Ninjas mortgage rate feed.

The feed is optional. Without an API key, or whenever the request fails,
``fetch_current_rates`` returns ``FALLBACK_RATES`` tagged with an error
message so callers can show that the figures are estimates.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

import requests
from loguru import logger

from .utils import to_decimal

MORTGAGE_RATE_URL = "https://api.api-ninjas.com/v1/mortgagerate"
FALLBACK_ERROR = "Using estimated rates - live data unavailable"
REFRESH_SECONDS = 60 * 60


@dataclass(frozen=True)
class MortgageRates:
    """Average 30-year and 15-year fixed rates in percent."""

    thirty_year: Decimal
    fifteen_year: Decimal
    last_updated: str
    error: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.error is None


FALLBACK_RATES = MortgageRates(
    thirty_year=Decimal("7.25"),
    fifteen_year=Decimal("6.75"),
    last_updated="",
)


def _fallback(reason: object) -> MortgageRates:
    logger.warning("Failed to fetch live mortgage rates, using fallback rates: {}", reason)
    return replace(
        FALLBACK_RATES,
        last_updated=datetime.now(timezone.utc).isoformat(),
        error=FALLBACK_ERROR,
    )


def fetch_current_rates(
    api_key: Optional[str] = None,
    timeout: float = 10,
    session: Optional[requests.Session] = None,
) -> MortgageRates:
    """Fetch the latest weekly rates; never raises."""
    if not api_key:
        return _fallback("API key required")
    http = session or requests
    try:
        r = http.get(MORTGAGE_RATE_URL, headers={"X-Api-Key": api_key}, timeout=timeout)
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as exc:
        return _fallback(exc)

    if not isinstance(data, list) or not data:
        return _fallback("empty response")
    latest = data[0]
    try:
        rates = MortgageRates(
            thirty_year=to_decimal(latest["frm_30"]),
            fifteen_year=to_decimal(latest["frm_15"]),
            last_updated=str(latest.get("week", "")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        return _fallback(f"malformed response: {exc}")
    logger.info("Fetched mortgage rates for week {}", rates.last_updated)
    return rates


class RateCache:
    """Keeps the last fetched rates for ``ttl`` seconds."""

    def __init__(
        self,
        fetch: Callable[[], MortgageRates],
        ttl: float = REFRESH_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._ttl = ttl
        self._clock = clock
        self._rates: Optional[MortgageRates] = None
        self._fetched_at = 0.0

    def get(self) -> MortgageRates:
        now = self._clock()
        if self._rates is None or now - self._fetched_at >= self._ttl:
            self._rates = self._fetch()
            self._fetched_at = now
        return self._rates

    def refresh(self) -> MortgageRates:
        self._rates = None
        return self.get()
