"""Financial health indicators - pure functions over currency-normalized records"""

import logging
from typing import Callable, Dict, FrozenSet, Iterable, NamedTuple

from finhealth_gateway.domain.currency import round_half_up
from finhealth_gateway.domain.models import FinancialRecord, HealthSnapshot, MetricResult
from finhealth_gateway.infrastructure.observability.metrics import degenerate_metric_counter

DELTA = "delta"
RATIO = "ratio"
PROPENSITY = "propensity"


def planned_total(records: Iterable[FinancialRecord]) -> float:
    return round_half_up(sum((r.amount.value for r in records if r.planned), 0.0))


def actual_total(records: Iterable[FinancialRecord]) -> float:
    return round_half_up(sum((r.amount.value for r in records if not r.planned), 0.0))


def safe_ratio(numerator: float, denominator: float, metric: str = "") -> float:
    """
    Divide, returning 0.0 for an empty denominator instead of faulting.

    A denominator that rounds to 0.00 counts as empty.
    """
    if round_half_up(denominator) == 0:
        if metric:
            degenerate_metric_counter.labels(metric=metric).inc()
            logging.debug(f"Zero denominator for {metric}, returning 0")
        return 0.0
    return numerator / denominator


def expenditure_delta(snapshot: HealthSnapshot) -> float:
    """Planned expenses minus actual expenses; positive means under budget"""
    return round_half_up(planned_total(snapshot.expenses) - actual_total(snapshot.expenses))


def expense_propensity(snapshot: HealthSnapshot) -> float:
    """Share of actual income spent on actual expenses"""
    return safe_ratio(
        actual_total(snapshot.expenses),
        actual_total(snapshot.incomes),
        "expense_propensity",
    )


def liquid_fund_ratio(snapshot: HealthSnapshot) -> float:
    balance = snapshot.fund_balance
    return safe_ratio(balance.liquid, balance.total, "liquid_fund_ratio")


def illiquid_fund_ratio(snapshot: HealthSnapshot) -> float:
    # Not 1 - liquid: an empty fund must report 0 for both shares
    balance = snapshot.fund_balance
    return safe_ratio(balance.illiquid, balance.total, "illiquid_fund_ratio")


def savings_to_income_ratio(snapshot: HealthSnapshot) -> float:
    """Net wealth fund contributions (withdrawals subtract) per unit of income"""
    return safe_ratio(
        actual_total(snapshot.wealth_fund),
        actual_total(snapshot.incomes),
        "savings_to_income_ratio",
    )


def savings_delta(snapshot: HealthSnapshot) -> float:
    """Planned minus actual wealth fund contributions"""
    return round_half_up(planned_total(snapshot.wealth_fund) - actual_total(snapshot.wealth_fund))


def investments_to_savings_ratio(snapshot: HealthSnapshot) -> float:
    return safe_ratio(
        actual_total(snapshot.investments),
        actual_total(snapshot.wealth_fund),
        "investments_to_savings_ratio",
    )


def investments_to_fund_ratio(snapshot: HealthSnapshot) -> float:
    return safe_ratio(
        actual_total(snapshot.investments),
        snapshot.fund_balance.total,
        "investments_to_fund_ratio",
    )


def loans_to_assets_ratio(snapshot: HealthSnapshot) -> float:
    """
    Outstanding debt against everything the user owns.

    Assets = wealth fund balance + investment holdings, both all-time as of
    the end of the window.
    """
    assets = snapshot.fund_balance.total + snapshot.investment_holdings
    return safe_ratio(snapshot.outstanding_loans, assets, "loans_to_assets_ratio")


def loans_propensity(snapshot: HealthSnapshot) -> float:
    """Share of actual income spent servicing loans"""
    servicing = actual_total(snapshot.loans)
    return safe_ratio(servicing, actual_total(snapshot.incomes), "loans_propensity")


class MetricSpec(NamedTuple):
    compute: Callable[[HealthSnapshot], float]
    kind: str
    needs: FrozenSet[str]  # HealthSnapshot fields the indicator reads


METRICS: Dict[str, MetricSpec] = {
    "expenditure_delta": MetricSpec(expenditure_delta, DELTA, frozenset({"expenses"})),
    "expense_propensity": MetricSpec(expense_propensity, PROPENSITY, frozenset({"expenses", "incomes"})),
    "liquid_fund_ratio": MetricSpec(liquid_fund_ratio, RATIO, frozenset({"fund_balance"})),
    "illiquid_fund_ratio": MetricSpec(illiquid_fund_ratio, RATIO, frozenset({"fund_balance"})),
    "savings_to_income_ratio": MetricSpec(savings_to_income_ratio, RATIO, frozenset({"wealth_fund", "incomes"})),
    "savings_delta": MetricSpec(savings_delta, DELTA, frozenset({"wealth_fund"})),
    "investments_to_savings_ratio": MetricSpec(
        investments_to_savings_ratio, RATIO, frozenset({"investments", "wealth_fund"})
    ),
    "investments_to_fund_ratio": MetricSpec(
        investments_to_fund_ratio, RATIO, frozenset({"investments", "fund_balance"})
    ),
    "loans_to_assets_ratio": MetricSpec(
        loans_to_assets_ratio, RATIO, frozenset({"outstanding_loans", "fund_balance", "investment_holdings"})
    ),
    "loans_propensity": MetricSpec(loans_propensity, PROPENSITY, frozenset({"loans", "incomes"})),
}


def compute_metric(name: str, snapshot: HealthSnapshot) -> MetricResult:
    """
    Main entry point: evaluate one indicator by name.

    Raises:
        KeyError: unknown indicator name
    """
    spec = METRICS[name]
    return MetricResult(name=name, kind=spec.kind, value=spec.compute(snapshot))
