"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


@dataclass(frozen=True)
class MonetaryAmount:
    """Amount of money in a given currency"""

    value: float
    currency: str  # 3-letter code, "" when unknown


@dataclass(frozen=True)
class ExchangeRate:
    """`nominal` units of `currency` cost `value` units of the base currency"""

    currency: str
    value: float
    nominal: int = 1

    def __post_init__(self) -> None:
        if self.nominal < 1:
            raise ValueError(f"Nominal for {self.currency} must be >= 1, got {self.nominal}")
        if self.value <= 0:
            raise ValueError(f"Rate for {self.currency} must be positive, got {self.value}")

    @property
    def unit_value(self) -> float:
        """Price of a single unit in base currency"""
        return self.value / self.nominal


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive reporting period"""

    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class FinancialRecord:
    """Common shape of every user-owned money movement"""

    id: int
    user_id: str
    amount: MonetaryAmount
    date: date
    planned: bool
    category: Optional[int]
    connected_account: str


@dataclass(frozen=True)
class Income(FinancialRecord):
    sender: str = ""


@dataclass(frozen=True)
class Expense(FinancialRecord):
    sent_to: str = ""


@dataclass(frozen=True)
class WealthFundEntry(FinancialRecord):
    """Contribution (positive) or withdrawal (negative) to the wealth fund"""

    liquid: bool = True


@dataclass(frozen=True)
class Loan(FinancialRecord):
    """Loan servicing payment; `remaining` is the balance left after it"""

    lender: str = ""
    remaining: float = 0.0


@dataclass(frozen=True)
class Investment(FinancialRecord):
    asset: str = ""


@dataclass
class Analytics:
    """Currency-normalized records for the analytics view"""

    incomes: List[Income]
    expenses: List[Expense]
    wealth_fund: List[WealthFundEntry]


@dataclass(frozen=True)
class FundBalance:
    """Wealth fund split into liquid and illiquid sub-balances"""

    liquid: float = 0.0
    illiquid: float = 0.0

    @property
    def total(self) -> float:
        return self.liquid + self.illiquid


@dataclass
class HealthSnapshot:
    """Everything the metric engine needs for one user and window"""

    window: TimeWindow
    currency: str
    incomes: List[Income] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    wealth_fund: List[WealthFundEntry] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)
    investments: List[Investment] = field(default_factory=list)
    # All-time balances as of window.end
    fund_balance: FundBalance = field(default_factory=FundBalance)
    investment_holdings: float = 0.0
    outstanding_loans: float = 0.0


@dataclass(frozen=True)
class MetricResult:
    """Computed indicator; kind is one of "delta", "ratio", "propensity" """

    name: str
    kind: str
    value: float


@dataclass
class Subscription:
    id: Optional[int] = None
    user_id: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = False


@dataclass
class ConnectedAccount:
    id: int
    user_id: str
    bank_id: str
    account_number: str
    account_type: str
    name: str
    currency: str
    state: str


@dataclass
class Category:
    id: int
    name: str
    icon: str
    is_fixed: bool
    user_id: str


@dataclass
class CategorySettings:
    income: List[Category] = field(default_factory=list)
    expense: List[Category] = field(default_factory=list)
    investment: List[Category] = field(default_factory=list)


@dataclass
class AppData:
    """Connected accounts grouped by bank plus category configuration"""

    connected_accounts: Dict[str, List[ConnectedAccount]] = field(default_factory=dict)
    category_settings: CategorySettings = field(default_factory=CategorySettings)


@dataclass
class More:
    app: AppData = field(default_factory=AppData)
    subscription: Subscription = field(default_factory=Subscription)
