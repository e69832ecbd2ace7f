"""Data access layer for financial records and profile lookups"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from finhealth_gateway.domain.exceptions import StorageError
from finhealth_gateway.domain.models import (
    Category,
    ConnectedAccount,
    Expense,
    FinancialRecord,
    Income,
    Investment,
    Loan,
    MonetaryAmount,
    Subscription,
    TimeWindow,
    WealthFundEntry,
)
from finhealth_gateway.infrastructure.database.models import (
    ConnectedAccountRow,
    ExpenseCategoryRow,
    ExpenseRow,
    IncomeCategoryRow,
    IncomeRow,
    InvestmentCategoryRow,
    InvestmentRow,
    LoanRow,
    SubscriptionRow,
    WealthFundRow,
)
from finhealth_gateway.infrastructure.observability.metrics import storage_failure_counter


def _currency(code: Optional[str]) -> str:
    code = (code or "").strip().upper()
    if code and (len(code) != 3 or not code.isalpha()):
        raise ValueError(f"invalid currency code {code!r}")
    return code


def _record_fields(row: Any) -> Dict[str, Any]:
    """Decode the columns every record table shares"""
    return {
        "id": row.id,
        "user_id": row.user_id,
        "amount": MonetaryAmount(float(row.amount), _currency(row.currency_code)),
        "date": row.date,
        "planned": bool(row.planned),
        "category": row.category,
        "connected_account": row.connected_account or "",
    }


class BaseRepository:
    """Wraps query execution so every storage failure surfaces as StorageError"""

    collection = ""

    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, query: Query, decode) -> List[Any]:
        try:
            return [decode(row) for row in query.all()]
        except SQLAlchemyError as e:
            storage_failure_counter.labels(collection=self.collection).inc()
            # Release the aborted transaction so later lookups can proceed
            self.db.rollback()
            raise StorageError(f"error getting {self.collection}: {e}") from e
        except (TypeError, ValueError) as e:
            storage_failure_counter.labels(collection=self.collection).inc()
            raise StorageError(f"error decoding {self.collection}: {e}") from e


class RecordRepository(BaseRepository, ABC):
    """Read-only, user-scoped access to one record table"""

    model: Type[Any]

    @abstractmethod
    def to_domain(self, row: Any) -> FinancialRecord:
        """Decode one row of `model` into its domain record"""

    def list_for_user(
        self,
        user_id: str,
        window: TimeWindow,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[FinancialRecord]:
        """Records inside the window, newest first; unpaginated when limit is None"""
        query = (
            self.db.query(self.model)
            .filter(
                self.model.user_id == user_id,
                self.model.date >= window.start,
                self.model.date <= window.end,
            )
            .order_by(self.model.date.desc(), self.model.id.desc())
        )
        if limit is not None:
            query = query.limit(limit).offset(offset)
        return self._fetch(query, self.to_domain)

    def totals_by_currency(self, user_id: str, as_of: date) -> List[MonetaryAmount]:
        """All-time sum of actual (unplanned) amounts up to as_of, one per currency"""
        query = (
            self.db.query(self.model.currency_code, func.sum(self.model.amount))
            .filter(
                self.model.user_id == user_id,
                self.model.date <= as_of,
                self.model.planned == False,  # noqa: E712
            )
            .group_by(self.model.currency_code)
        )
        return self._fetch(query, lambda row: MonetaryAmount(float(row[1]), _currency(row[0])))


class IncomeRepository(RecordRepository):
    collection = "income"
    model = IncomeRow

    def to_domain(self, row: IncomeRow) -> Income:
        return Income(**_record_fields(row), sender=row.sender or "")


class ExpenseRepository(RecordRepository):
    collection = "expense"
    model = ExpenseRow

    def to_domain(self, row: ExpenseRow) -> Expense:
        return Expense(**_record_fields(row), sent_to=row.sent_to or "")


class WealthFundRepository(RecordRepository):
    collection = "wealth_fund"
    model = WealthFundRow

    def to_domain(self, row: WealthFundRow) -> WealthFundEntry:
        return WealthFundEntry(**_record_fields(row), liquid=bool(row.is_liquid))

    def balances(self, user_id: str, as_of: date) -> List[Tuple[bool, MonetaryAmount]]:
        """All-time actual balance up to as_of, split by liquidity and currency"""
        query = (
            self.db.query(WealthFundRow.is_liquid, WealthFundRow.currency_code, func.sum(WealthFundRow.amount))
            .filter(
                WealthFundRow.user_id == user_id,
                WealthFundRow.date <= as_of,
                WealthFundRow.planned == False,  # noqa: E712
            )
            .group_by(WealthFundRow.is_liquid, WealthFundRow.currency_code)
        )
        return self._fetch(
            query,
            lambda row: (bool(row[0]), MonetaryAmount(float(row[2]), _currency(row[1]))),
        )


class LoanRepository(RecordRepository):
    collection = "loans"
    model = LoanRow

    def to_domain(self, row: LoanRow) -> Loan:
        return Loan(**_record_fields(row), lender=row.lender, remaining=float(row.remaining))

    def latest_per_lender(self, user_id: str, as_of: date) -> List[Loan]:
        """Most recent actual payment per lender up to as_of"""
        query = (
            self.db.query(LoanRow)
            .filter(
                LoanRow.user_id == user_id,
                LoanRow.date <= as_of,
                LoanRow.planned == False,  # noqa: E712
            )
            .order_by(LoanRow.date.desc(), LoanRow.id.desc())
        )
        latest: Dict[str, Loan] = {}
        for loan in self._fetch(query, self.to_domain):
            latest.setdefault(loan.lender, loan)
        return list(latest.values())


class InvestmentRepository(RecordRepository):
    collection = "investments"
    model = InvestmentRow

    def to_domain(self, row: InvestmentRow) -> Investment:
        return Investment(**_record_fields(row), asset=row.asset or "")


class ProfileRepository(BaseRepository):
    """Subscription, connected accounts and category configuration"""

    collection = "profile"

    def get_subscription(self, user_id: str) -> Optional[Subscription]:
        query = self.db.query(SubscriptionRow).filter(SubscriptionRow.user_id == user_id).limit(1)
        subscriptions = self._fetch(
            query,
            lambda row: Subscription(
                id=row.id,
                user_id=row.user_id,
                start_date=row.start_date,
                end_date=row.end_date,
                is_active=bool(row.is_active),
            ),
        )
        return subscriptions[0] if subscriptions else None

    def list_connected_accounts(self, user_id: str) -> List[ConnectedAccount]:
        query = (
            self.db.query(ConnectedAccountRow)
            .filter(ConnectedAccountRow.user_id == user_id)
            .order_by(ConnectedAccountRow.id)
        )
        return self._fetch(
            query,
            lambda row: ConnectedAccount(
                id=row.id,
                user_id=row.user_id,
                bank_id=row.bank_id,
                account_number=row.account_number,
                account_type=row.account_type,
                name=row.name,
                currency=_currency(row.currency),
                state=row.state,
            ),
        )

    def list_categories(self, user_id: str, kind: str) -> List[Category]:
        """Categories of one kind: "income", "expense" or "investment" """
        model = {
            "income": IncomeCategoryRow,
            "expense": ExpenseCategoryRow,
            "investment": InvestmentCategoryRow,
        }[kind]
        query = self.db.query(model).filter(model.user_id == user_id).order_by(model.id)
        return self._fetch(
            query,
            lambda row: Category(
                id=row.id,
                name=row.name,
                icon=row.icon or "",
                is_fixed=bool(row.is_fixed),
                user_id=row.user_id,
            ),
        )
