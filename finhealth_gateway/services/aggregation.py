"""Fetch user records and normalize every amount into the reporting currency"""

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from finhealth_gateway.config import settings
from finhealth_gateway.domain.currency import CurrencyConverter, round_half_up
from finhealth_gateway.domain.exceptions import InvalidQueryError, StorageError
from finhealth_gateway.domain.models import (
    Analytics,
    AppData,
    CategorySettings,
    FinancialRecord,
    FundBalance,
    HealthSnapshot,
    MonetaryAmount,
    More,
    Subscription,
    TimeWindow,
)
from finhealth_gateway.infrastructure.database.repositories import (
    ExpenseRepository,
    IncomeRepository,
    InvestmentRepository,
    LoanRepository,
    ProfileRepository,
    WealthFundRepository,
)
from finhealth_gateway.utils.date_utils import resolve_window

SNAPSHOT_PARTS = frozenset(
    {
        "incomes",
        "expenses",
        "wealth_fund",
        "loans",
        "investments",
        "fund_balance",
        "investment_holdings",
        "outstanding_loans",
    }
)


def resolve_page(limit: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
    """
    Apply pagination defaults; limit above the configured maximum is clamped.

    Raises:
        InvalidQueryError: limit below 1 or negative offset
    """
    if limit is None:
        limit = settings.default_page_limit
    offset = offset or 0
    if limit < 1:
        raise InvalidQueryError(f"limit must be at least 1, got {limit}")
    if offset < 0:
        raise InvalidQueryError(f"offset must not be negative, got {offset}")
    return min(limit, settings.max_page_limit), offset


class RecordAggregator:
    """Collects a user's records with amounts expressed in one reporting currency"""

    def __init__(self, db: Session, converter: CurrencyConverter):
        self.converter = converter
        self.incomes = IncomeRepository(db)
        self.expenses = ExpenseRepository(db)
        self.wealth_fund = WealthFundRepository(db)
        self.loans = LoanRepository(db)
        self.investments = InvestmentRepository(db)

    def fetch(
        self,
        user_id: str,
        reporting_currency: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Analytics:
        """
        One page of incomes, expenses and wealth fund entries, newest first.

        An empty reporting currency leaves every amount as stored.

        Raises:
            InvalidQueryError: malformed window or pagination
            StorageError: any query failed; no partial result is returned
        """
        window = resolve_window(start_date, end_date, settings.default_window_days, today)
        limit, offset = resolve_page(limit, offset)

        return Analytics(
            incomes=self._page(self.incomes, user_id, reporting_currency, window, limit, offset),
            expenses=self._page(self.expenses, user_id, reporting_currency, window, limit, offset),
            wealth_fund=self._page(self.wealth_fund, user_id, reporting_currency, window, limit, offset),
        )

    def snapshot(
        self,
        user_id: str,
        reporting_currency: str,
        window: TimeWindow,
        parts: Iterable[str] = SNAPSHOT_PARTS,
    ) -> HealthSnapshot:
        """
        Load the metric engine inputs named in `parts`.

        Window parts hold every record in the window. Balance parts are
        all-time up to window.end, summed per currency by the database
        before conversion and rounded to cents after it.
        """
        parts = frozenset(parts)
        unknown = parts - SNAPSHOT_PARTS
        if unknown:
            raise ValueError(f"Unknown snapshot parts: {sorted(unknown)}")

        snapshot = HealthSnapshot(window=window, currency=reporting_currency)
        for name in ("incomes", "expenses", "wealth_fund", "loans", "investments"):
            if name in parts:
                records = getattr(self, name).list_for_user(user_id, window)
                setattr(snapshot, name, self._normalize_all(records, reporting_currency))

        if "fund_balance" in parts:
            liquid = illiquid = 0.0
            for is_liquid, amount in self.wealth_fund.balances(user_id, window.end):
                value = self._normalize(amount, reporting_currency).value
                if is_liquid:
                    liquid += value
                else:
                    illiquid += value
            snapshot.fund_balance = FundBalance(liquid=round_half_up(liquid), illiquid=round_half_up(illiquid))

        if "investment_holdings" in parts:
            holdings = sum(
                (
                    self._normalize(amount, reporting_currency).value
                    for amount in self.investments.totals_by_currency(user_id, window.end)
                ),
                0.0,
            )
            snapshot.investment_holdings = round_half_up(holdings)

        if "outstanding_loans" in parts:
            outstanding = sum(
                (
                    self._normalize(MonetaryAmount(loan.remaining, loan.amount.currency), reporting_currency).value
                    for loan in self.loans.latest_per_lender(user_id, window.end)
                ),
                0.0,
            )
            snapshot.outstanding_loans = round_half_up(outstanding)

        return snapshot

    def _page(self, repository, user_id, reporting_currency, window, limit, offset) -> List[FinancialRecord]:
        records = repository.list_for_user(user_id, window, limit=limit, offset=offset)
        return self._normalize_all(records, reporting_currency)

    def _normalize_all(self, records: Iterable[FinancialRecord], reporting_currency: str) -> List[FinancialRecord]:
        normalized = []
        for record in records:
            amount = self._normalize(record.amount, reporting_currency)
            normalized.append(record if amount is record.amount else replace(record, amount=amount))
        return normalized

    def _normalize(self, amount: MonetaryAmount, reporting_currency: str) -> MonetaryAmount:
        if amount.currency != reporting_currency and reporting_currency != "":
            return self.converter.convert_amount(amount, reporting_currency)
        return amount


class ProfileAggregator:
    """Builds the read-only "more" view; a missing sub-resource never fails it"""

    def __init__(self, db: Session):
        self.profile = ProfileRepository(db)

    def fetch_more(self, user_id: str) -> More:
        return More(app=self.fetch_app(user_id), subscription=self.fetch_subscription(user_id))

    def fetch_subscription(self, user_id: str) -> Subscription:
        try:
            subscription = self.profile.get_subscription(user_id)
        except StorageError as e:
            logging.warning(f"Subscription lookup failed: {e}", extra={"user_id": user_id})
            return Subscription()
        return subscription or Subscription()

    def fetch_app(self, user_id: str) -> AppData:
        app = AppData()

        try:
            for account in self.profile.list_connected_accounts(user_id):
                app.connected_accounts.setdefault(account.bank_id, []).append(account)
        except StorageError as e:
            logging.warning(f"Connected accounts lookup failed: {e}", extra={"user_id": user_id})
            app.connected_accounts = {}

        try:
            app.category_settings = CategorySettings(
                income=self.profile.list_categories(user_id, "income"),
                expense=self.profile.list_categories(user_id, "expense"),
                investment=self.profile.list_categories(user_id, "investment"),
            )
        except StorageError as e:
            logging.warning(f"Category settings lookup failed: {e}", extra={"user_id": user_id})

        return app
