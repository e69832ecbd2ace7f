"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from finhealth_gateway.config import settings
from finhealth_gateway.domain.currency import CurrencyConverter, RateTable
from finhealth_gateway.domain.exceptions import AuthenticationMissing
from finhealth_gateway.infrastructure.database.session import get_db
from finhealth_gateway.services.aggregation import ProfileAggregator, RecordAggregator
from finhealth_gateway.services.health import HealthService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user(x_user_id: Optional[str] = Header(None)) -> str:
    """User identity resolved by the upstream gateway"""
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationMissing("No user identity in request")
    return x_user_id.strip()


def get_rate_table(request: Request) -> RateTable:
    """Process-wide rate snapshot owned by the application"""
    return request.app.state.rate_table


def get_converter(rate_table: RateTable = Depends(get_rate_table)) -> CurrencyConverter:
    return CurrencyConverter(rate_table, settings.base_currency)


def get_record_aggregator(
    db: Session = Depends(get_db),
    converter: CurrencyConverter = Depends(get_converter),
) -> RecordAggregator:
    return RecordAggregator(db, converter)


def get_profile_aggregator(db: Session = Depends(get_db)) -> ProfileAggregator:
    return ProfileAggregator(db)


def get_health_service(aggregator: RecordAggregator = Depends(get_record_aggregator)) -> HealthService:
    return HealthService(aggregator, settings.base_currency, settings.default_window_days)
