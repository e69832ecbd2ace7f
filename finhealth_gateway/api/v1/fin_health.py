"""GET /v1/fin_health/* - financial health indicators for the authenticated user"""

import time
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from finhealth_gateway.api.dependencies import get_current_user, get_health_service, get_request_id
from finhealth_gateway.api.v1.schemas import DeltaResponse, PropensityResponse, RatioResponse
from finhealth_gateway.config import settings
from finhealth_gateway.domain.exceptions import InvalidQueryError, StorageError
from finhealth_gateway.infrastructure.observability.logging import log_metric
from finhealth_gateway.services.health import HealthService

router = APIRouter()


class MetricQuery:
    """Optional reporting currency and window shared by every indicator"""

    def __init__(
        self,
        currency: Optional[str] = Query(
            None, min_length=3, max_length=3, description="Reporting currency (default: base currency)"
        ),
        start_date: Optional[date] = Query(None, description="Window start (default: 30 days ago)"),
        end_date: Optional[date] = Query(None, description="Window end (default: today)"),
    ):
        self.currency = currency.upper() if currency else None
        self.start_date = start_date
        self.end_date = end_date


def evaluate(name: str, request: Request, user_id: str, query: MetricQuery, service: HealthService) -> float:
    """Compute one indicator, mapping domain failures to HTTP errors"""
    start_time = time.time()
    request_id = get_request_id(request)
    logging.debug(f"Calculating {name}...", extra={"request_id": request_id})

    try:
        result = service.compute(name, user_id, query.currency, query.start_date, query.end_date)

    except InvalidQueryError as e:
        logging.warning(f"Invalid query: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id, "metric": name})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_metric(request_id, user_id, name, result.value, query.currency or settings.base_currency, duration_ms)
    return result.value


@router.get("/fin_health/expenses/delta", response_model=DeltaResponse)
def expenditure_delta(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Planned minus actual expenses over the window"""
    value = evaluate("expenditure_delta", request, user_id, query, service)
    return DeltaResponse(message="Expenditure delta calculated successfully", delta=value, status_code=200)


@router.get("/fin_health/expenses/propensity", response_model=PropensityResponse)
def expense_propensity(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Actual expenses divided by actual income"""
    value = evaluate("expense_propensity", request, user_id, query, service)
    return PropensityResponse(
        message="Expense propensity calculated successfully",
        expense_propensity=value,
        status_code=200,
    )


@router.get("/fin_health/savings/ratio/liquid", response_model=RatioResponse)
def liquid_fund_ratio(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Liquid share of the wealth fund balance"""
    value = evaluate("liquid_fund_ratio", request, user_id, query, service)
    return RatioResponse(message="Liquid fund ratio calculated successfully", ratio=value, status_code=200)


@router.get("/fin_health/savings/ratio/illiquid", response_model=RatioResponse)
def illiquid_fund_ratio(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Illiquid share of the wealth fund balance"""
    value = evaluate("illiquid_fund_ratio", request, user_id, query, service)
    return RatioResponse(message="Illiquid fund ratio calculated successfully", ratio=value, status_code=200)


@router.get("/fin_health/savings/ratio/savings_to_income", response_model=RatioResponse)
def savings_to_income_ratio(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Net wealth fund contributions divided by actual income"""
    value = evaluate("savings_to_income_ratio", request, user_id, query, service)
    return RatioResponse(message="Savings to income ratio calculated successfully", ratio=value, status_code=200)


@router.get("/fin_health/savings/delta", response_model=DeltaResponse)
def savings_delta(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Planned minus actual wealth fund contributions"""
    value = evaluate("savings_delta", request, user_id, query, service)
    return DeltaResponse(message="Savings delta calculated successfully", delta=value, status_code=200)


@router.get("/fin_health/investments/ratio/investments_to_savings", response_model=RatioResponse)
def investments_to_savings_ratio(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    value = evaluate("investments_to_savings_ratio", request, user_id, query, service)
    return RatioResponse(
        message="Monthly investments to savings ratio calculated successfully",
        ratio=value,
        status_code=200,
    )


@router.get("/fin_health/investments/ratio/investments_to_fund", response_model=RatioResponse)
def investments_to_fund_ratio(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    value = evaluate("investments_to_fund_ratio", request, user_id, query, service)
    return RatioResponse(
        message="Monthly investments to fund ratio calculated successfully",
        ratio=value,
        status_code=200,
    )


@router.get("/fin_health/loans/ratio/loans_to_assets", response_model=RatioResponse)
def loans_to_assets_ratio(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Outstanding loans against wealth fund plus investment holdings"""
    value = evaluate("loans_to_assets_ratio", request, user_id, query, service)
    return RatioResponse(message="Loans to assets ratio calculated successfully", ratio=value, status_code=200)


@router.get("/fin_health/loans/propensity", response_model=PropensityResponse)
def loans_propensity(
    request: Request,
    query: MetricQuery = Depends(),
    user_id: str = Depends(get_current_user),
    service: HealthService = Depends(get_health_service),
):
    """Loan servicing payments divided by actual income"""
    value = evaluate("loans_propensity", request, user_id, query, service)
    return PropensityResponse(
        message="Loans propensity calculated successfully",
        expense_propensity=value,
        status_code=200,
    )
