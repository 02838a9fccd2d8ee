"""
USD-based exchange rates for showing estimates in the customer's currency.

Rates come from a public exchange-rate API and are cached in process for a
day. Estimates themselves are always computed and stored in USD.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

import requests

from softwhere import config

logger = logging.getLogger(__name__)

BASE_CURRENCY = "USD"
SUPPORTED_CURRENCIES = ("USD", "UZS", "EUR", "RUB")
CACHE_SECONDS = 24 * 60 * 60

OPEN_ACCESS_URL = "https://open.er-api.com/v6/latest/USD"
KEYED_URL = "https://v6.exchangerate-api.com/v6/{api_key}/latest/USD"


class CurrencyRatesError(RuntimeError):
    """The upstream rates provider failed or answered with something unusable."""


def rates_url(api_key: Optional[str] = None) -> str:
    return KEYED_URL.format(api_key=api_key) if api_key else OPEN_ACCESS_URL


class CurrencyRates:
    def __init__(
        self,
        api_key: Optional[str] = None,
        ttl: float = CACHE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key if api_key is not None else config.EXCHANGERATE_API_KEY
        self.ttl = ttl
        self.clock = clock
        self._cached: Optional[Dict[str, Any]] = None
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def _fetch(self) -> Dict[str, Any]:
        try:
            r = requests.get(rates_url(self.api_key), timeout=10)
        except requests.RequestException as e:
            raise CurrencyRatesError(f"Currency API request failed: {e}") from e
        if not r.ok:
            raise CurrencyRatesError(f"Currency API failed: {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise CurrencyRatesError("Currency API returned invalid JSON") from e

        if not isinstance(data, dict):
            raise CurrencyRatesError("Currency API returned invalid data")
        # open access answers "rates", the keyed API "conversion_rates"
        rates = data.get("rates") or data.get("conversion_rates")
        if not isinstance(rates, dict) or not rates:
            raise CurrencyRatesError("Currency API returned invalid data")
        return {"base": data.get("base_code") or BASE_CURRENCY, "rates": rates}

    def get(self) -> Dict[str, Any]:
        """{"base": "USD", "rates": {...}}, refreshed at most once per ttl."""
        with self._lock:
            now = self.clock()
            if self._cached is not None and now - self._fetched_at < self.ttl:
                return self._cached
            self._cached = self._fetch()
            self._fetched_at = now
            logger.info("Currency rates refreshed (%d currencies)", len(self._cached["rates"]))
            return self._cached
