"""Exchange rate provider HTTP client for the CBR daily JSON feed"""

import logging
import time
from typing import List, Optional

import httpx

from finhealth_gateway.config import settings
from finhealth_gateway.domain.exceptions import RateProviderError
from finhealth_gateway.domain.models import ExchangeRate
from finhealth_gateway.infrastructure.observability.metrics import (
    rate_fetch_latency_histogram,
    rate_refresh_failure_counter,
)


class RateProviderClient:
    """Client for the daily exchange rate snapshot (rates quoted in RUB)"""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url or settings.rates_api_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.rates_max_retries
        self.backoff_base = settings.rates_backoff_base
        self.transport = transport

    def fetch_rates(self) -> List[ExchangeRate]:
        """
        Fetch the current rate snapshot.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base ... (base * 2^(attempt-1))
        - Retries on timeouts, network failures and 5xx responses
        - 4xx responses and malformed payloads fail immediately

        Raises:
            RateProviderError: after the last failed attempt or on invalid data
        """
        attempt = 0
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with rate_fetch_latency_histogram.time():
                        response = client.get(self.url)
                        response.raise_for_status()
                    return self.parse_snapshot(response.json())

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    rate_refresh_failure_counter.inc()
                    if e.response.status_code < 500 or attempt >= self.max_retries:
                        raise RateProviderError(f"Rate provider error: {e.response.status_code}") from e

                except httpx.RequestError as e:
                    attempt += 1
                    rate_refresh_failure_counter.inc()
                    if attempt >= self.max_retries:
                        raise RateProviderError(f"Rate provider unavailable: {e}") from e

                except ValueError as e:
                    rate_refresh_failure_counter.inc()
                    raise RateProviderError(f"Invalid rate payload: {e}") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logging.warning(f"Rate fetch attempt {attempt} failed, retrying in {backoff}s")
                time.sleep(backoff)

    @staticmethod
    def parse_snapshot(data: dict) -> List[ExchangeRate]:
        """
        Decode the `Valute` map of a CBR daily payload.

        Raises:
            ValueError: missing keys, wrong types or non-positive rates
        """
        try:
            valutes = data["Valute"]
            return [
                ExchangeRate(
                    currency=str(item.get("CharCode") or code).upper(),
                    value=float(item["Value"]),
                    nominal=int(item.get("Nominal", 1)),
                )
                for code, item in valutes.items()
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"malformed snapshot: {e}") from e
