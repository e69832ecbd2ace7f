"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from finhealth_gateway.domain.models import FinancialRecord


class DeltaResponse(BaseModel):
    """Response for delta indicators"""

    message: str
    delta: float
    status_code: int


class PropensityResponse(BaseModel):
    """Response for propensity indicators"""

    message: str
    expense_propensity: float
    status_code: int


class RatioResponse(BaseModel):
    """Response for ratio indicators"""

    message: str
    ratio: float
    status_code: int


class RecordSchema(BaseModel):
    """Fields shared by every financial record"""

    id: int
    user_id: str
    amount: float
    currency: str
    date: date
    planned: bool
    category: Optional[int] = None
    connected_account: str

    @classmethod
    def from_record(cls, record: FinancialRecord, **extra):
        return cls(
            id=record.id,
            user_id=record.user_id,
            amount=record.amount.value,
            currency=record.amount.currency,
            date=record.date,
            planned=record.planned,
            category=record.category,
            connected_account=record.connected_account,
            **extra,
        )


class IncomeSchema(RecordSchema):
    sender: str


class ExpenseSchema(RecordSchema):
    sent_to: str


class WealthFundSchema(RecordSchema):
    liquid: bool


class AnalyticsResponse(BaseModel):
    """Response for GET /v1/analytics"""

    income: List[IncomeSchema]
    expense: List[ExpenseSchema]
    wealth_fund: List[WealthFundSchema]


class SubscriptionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    user_id: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = False


class ConnectedAccountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    bank_id: str
    account_number: str
    account_type: str
    name: str
    currency: str
    state: str


class CategorySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    icon: str
    is_fixed: bool
    user_id: str


class CategorySettingsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    income: List[CategorySchema] = []
    expense: List[CategorySchema] = []
    investment: List[CategorySchema] = []


class AppSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    connected_accounts: Dict[str, List[ConnectedAccountSchema]] = {}
    category_settings: CategorySettingsSchema = CategorySettingsSchema()


class SettingsSchema(BaseModel):
    subscription: SubscriptionSchema


class MoreResponse(BaseModel):
    """Response for GET /v1/more"""

    app: AppSchema
    settings: SettingsSchema


class RateSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    currency: str
    value: float
    nominal: int


class RatesResponse(BaseModel):
    """Response for GET /v1/rates"""

    base_currency: str
    loaded_at: Optional[datetime] = None
    rates: List[RateSchema]


class RefreshResponse(BaseModel):
    """Response for POST /v1/rates/refresh"""

    message: str
    currencies: int
    status_code: int
