"""Exchange rate snapshot and currency conversion through a base currency"""

import logging
import math
import threading
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from finhealth_gateway.domain.exceptions import RateProviderError
from finhealth_gateway.domain.models import ExchangeRate, MonetaryAmount
from finhealth_gateway.infrastructure.observability.metrics import rate_lookup_miss_counter

RateLoader = Callable[[], Iterable[ExchangeRate]]

_EMPTY: Mapping[str, ExchangeRate] = MappingProxyType({})


def round_half_up(value: float, places: int = 2) -> float:
    """Round away from zero on ties, using the shortest repr of the float"""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class RateTable:
    """
    Read-mostly snapshot of exchange rates against the base currency.

    Readers always see a complete mapping: `replace` swaps the reference to a
    new read-only dict instead of mutating the current one. The table starts
    empty and is populated from `loader` on the first read; after a failed
    lazy load the next attempt waits `lazy_retry_seconds`.
    """

    def __init__(self, loader: Optional[RateLoader] = None, lazy_retry_seconds: float = 60.0):
        self._loader = loader
        self._rates: Mapping[str, ExchangeRate] = _EMPTY
        self._loaded_at: Optional[datetime] = None
        self._lazy_retry_seconds = lazy_retry_seconds
        self._last_lazy_attempt: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def loaded_at(self) -> Optional[datetime]:
        return self._loaded_at

    def snapshot(self) -> Mapping[str, ExchangeRate]:
        """Current rates, loading them lazily if the table was never populated"""
        rates = self._rates
        if rates or self._loader is None:
            return rates

        with self._lock:
            if self._rates:
                return self._rates
            now = time.monotonic()
            if self._last_lazy_attempt is not None and now - self._last_lazy_attempt < self._lazy_retry_seconds:
                return self._rates
            self._last_lazy_attempt = now
            try:
                self._swap(self._loader())
            except RateProviderError as e:
                # Reports still render with unconverted amounts
                logging.warning(f"Lazy exchange rate load failed: {e}")
            return self._rates

    def get(self, currency: str) -> Optional[ExchangeRate]:
        return self.snapshot().get(currency)

    def replace(self, rates: Iterable[ExchangeRate]) -> None:
        """Install a new snapshot as a whole"""
        with self._lock:
            self._swap(rates)

    def refresh(self) -> int:
        """
        Reload rates from the provider and replace the snapshot.

        Raises:
            RateProviderError: provider unavailable or no loader configured
        """
        if self._loader is None:
            raise RateProviderError("No exchange rate loader configured")
        rates = list(self._loader())
        self.replace(rates)
        logging.info("Exchange rates refreshed", extra={"currencies": len(rates)})
        return len(rates)

    def _swap(self, rates: Iterable[ExchangeRate]) -> None:
        self._rates = MappingProxyType({rate.currency: rate for rate in rates})
        self._loaded_at = datetime.now(timezone.utc)


class CurrencyConverter:
    """Converts amounts between currencies, pivoting on the base currency"""

    def __init__(self, rates: RateTable, base_currency: str = "RUB"):
        self.rates = rates
        self.base_currency = base_currency

    def convert(self, amount: float, from_code: str, to_code: str) -> float:
        """
        Convert `amount` from one currency to another.

        Identity conversions (same code, or either code empty) only round.
        A currency missing from the rate table leaves `amount` untouched.

        Example:
            USD rate 90 RUB per 1 unit
            convert(100, "USD", "RUB") -> 9000.0
            convert(9000, "RUB", "USD") -> 100.0
        """
        if not from_code or not to_code or from_code == to_code:
            return round_half_up(amount)

        converted = self._convert(amount, from_code, to_code)
        return amount if converted is None else converted

    def convert_amount(self, amount: MonetaryAmount, to_code: str) -> MonetaryAmount:
        """Convert and relabel; on a rate miss the original amount is kept"""
        if not amount.currency or not to_code or amount.currency == to_code:
            return MonetaryAmount(round_half_up(amount.value), amount.currency)

        converted = self._convert(amount.value, amount.currency, to_code)
        if converted is None:
            return amount
        return MonetaryAmount(converted, to_code)

    def _convert(self, amount: float, from_code: str, to_code: str) -> Optional[float]:
        # One snapshot per conversion so a concurrent refresh cannot mix rates
        rates = self.rates.snapshot()

        if to_code == self.base_currency:
            rate_from = self._lookup(rates, from_code)
            if rate_from is None:
                return None
            return round_half_up(amount * rate_from.unit_value)

        if from_code == self.base_currency:
            rate_to = self._lookup(rates, to_code)
            if rate_to is None:
                return None
            return round_half_up(amount / rate_to.unit_value)

        rate_from = self._lookup(rates, from_code)
        if rate_from is None:
            return None
        rate_to = self._lookup(rates, to_code)
        if rate_to is None:
            return None
        return round_half_up(amount * rate_from.unit_value / rate_to.unit_value)

    @staticmethod
    def _lookup(rates: Mapping[str, ExchangeRate], currency: str) -> Optional[ExchangeRate]:
        rate = rates.get(currency)
        if rate is None:
            rate_lookup_miss_counter.labels(currency=currency).inc()
            logging.warning(
                f"Couldn't find exchange rate for {currency}",
                extra={"currency_code": currency},
            )
        return rate
