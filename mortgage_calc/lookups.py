"""Clients for the external lookup services.

Two services feed values into a loan configuration: a tax-rate lookup that
resolves a US zip code to its city, state and average property tax rate,
and a rate-quote service for current 30- and 15-year fixed rates. Both are
plain JSON-over-HTTP endpoints. Responses are kept in a ``TimedCache`` for
ten minutes so that repeated lookups do not hit the service again.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10 * 60
ZIP_PATTERN = re.compile(r"^\d{5}$")
RATE_LIMIT_MESSAGE = "Rate limit reached. Please wait a moment and try again."


class LookupServiceError(Exception):
    """The lookup service failed or returned an unusable payload."""


class RateLimitError(LookupServiceError):
    def __init__(self, message: str = RATE_LIMIT_MESSAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class LocationData:
    city: str
    state: str
    tax_rate: Decimal  # decimal fraction, 0.015 for 1.5 %


@dataclass(frozen=True)
class RateQuote:
    rate_30_year: Decimal  # percent
    rate_15_year: Decimal  # percent


class TimedCache:
    """Mapping of key to ``(value, timestamp)`` with a freshness window.

    ``get`` only returns values stored less than ``ttl_seconds`` ago; stale
    entries are dropped on access.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self._ttl:
            del self._entries[key]
            return None
        return value

    def put(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def annual_property_tax(home_price: Decimal, tax_rate: Decimal) -> Decimal:
    """Yearly property tax in whole dollars for a price and a fractional rate."""
    return (home_price * tax_rate).quantize(Decimal("1"), ROUND_HALF_UP)


def _number(payload: Dict[str, Any], key: str) -> Decimal:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise LookupServiceError(f"Invalid data format received: {key!r} is not a number")
    return Decimal(str(value))


class _JsonClient:
    def __init__(self, base_url: str, cache: Optional[TimedCache] = None,
                 http_client: Optional[httpx.Client] = None, timeout: float = 15.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache if cache is not None else TimedCache()
        self._http = http_client
        self._timeout = timeout

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if self._http is not None:
                resp = self._http.get(url, params=params)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    resp = client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Lookup request to %s failed: %s", url, e)
            if e.response.status_code == 429:
                raise RateLimitError() from e
            raise LookupServiceError(f"Lookup service returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Lookup request to %s failed: %s", url, e)
            raise LookupServiceError("Lookup service unavailable") from e
        except ValueError as e:
            logger.warning("Lookup response from %s is not JSON: %s", url, e)
            raise LookupServiceError("Invalid data format received.") from e
        if not isinstance(data, dict):
            raise LookupServiceError("Invalid data format received.")
        return data


class TaxRateClient(_JsonClient):
    """Resolves a 5-digit zip code to ``LocationData``."""

    def lookup(self, zip_code: str) -> LocationData:
        zip_code = zip_code.strip()
        if not ZIP_PATTERN.match(zip_code):
            raise ValueError(f"Zip code must be 5 digits: {zip_code!r}")

        cached = self.cache.get(zip_code)
        if cached is not None:
            logger.debug("Tax rate cache hit for %s", zip_code)
            return cached

        data = self._get_json("/tax-rate", params={"zip": zip_code})
        city, state = data.get("city"), data.get("state")
        if not city or not state:
            raise LookupServiceError("Zip code not found or invalid.")
        location = LocationData(city=str(city), state=str(state), tax_rate=_number(data, "taxRate"))
        self.cache.put(zip_code, location)
        return location


class RateQuoteClient(_JsonClient):
    """Fetches current average 30- and 15-year fixed rates."""

    CACHE_KEY = "rates"

    def current_rates(self) -> RateQuote:
        cached = self.cache.get(self.CACHE_KEY)
        if cached is not None:
            logger.debug("Rate quote cache hit")
            return cached

        data = self._get_json("/rates")
        quote = RateQuote(
            rate_30_year=_number(data, "rate30Year"),
            rate_15_year=_number(data, "rate15Year"),
        )
        self.cache.put(self.CACHE_KEY, quote)
        return quote
