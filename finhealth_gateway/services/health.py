"""Financial health orchestration - aggregate, compute, record"""

from datetime import date
from typing import Optional

from finhealth_gateway.domain.metrics import METRICS, compute_metric
from finhealth_gateway.domain.models import MetricResult
from finhealth_gateway.infrastructure.observability.metrics import record_metric
from finhealth_gateway.services.aggregation import RecordAggregator
from finhealth_gateway.utils.date_utils import resolve_window


class HealthService:
    """Evaluates one indicator for one user over a resolved window"""

    def __init__(self, aggregator: RecordAggregator, base_currency: str, window_days: int = 30):
        self.aggregator = aggregator
        self.base_currency = base_currency
        self.window_days = window_days

    def compute(
        self,
        name: str,
        user_id: str,
        currency: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> MetricResult:
        """
        Flow:
        1. Resolve window (default: last `window_days` days) and currency
           (default: base currency, so sums never mix currencies)
        2. Load only the snapshot parts the indicator reads
        3. Compute and record the indicator

        Raises:
            InvalidQueryError: malformed window
            StorageError: record fetch failed
        """
        window = resolve_window(start_date, end_date, self.window_days, today)
        currency = currency or self.base_currency

        snapshot = self.aggregator.snapshot(user_id, currency, window, parts=METRICS[name].needs)
        result = compute_metric(name, snapshot)

        record_metric(result.name, result.kind, result.value)
        return result
