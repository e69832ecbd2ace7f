"""GET /v1/analytics - user's records normalized into one currency"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from finhealth_gateway.api.dependencies import get_current_user, get_record_aggregator, get_request_id
from finhealth_gateway.api.v1.schemas import AnalyticsResponse, ExpenseSchema, IncomeSchema, WealthFundSchema
from finhealth_gateway.domain.exceptions import InvalidQueryError, StorageError
from finhealth_gateway.services.aggregation import RecordAggregator

router = APIRouter()


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(
    request: Request,
    currency: str = Query("", max_length=3, description="Reporting currency; empty keeps stored currencies"),
    limit: Optional[int] = Query(None, description="Page size per record kind"),
    offset: Optional[int] = Query(None, description="Records to skip per record kind"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    user_id: str = Depends(get_current_user),
    aggregator: RecordAggregator = Depends(get_record_aggregator),
):
    """
    Retrieve incomes, expenses and wealth fund entries, newest first.

    Returns:
        One page of each record kind within the window (default: last 30 days)
    """
    request_id = get_request_id(request)

    try:
        analytics = aggregator.fetch(user_id, currency.upper(), limit, offset, start_date, end_date)
    except InvalidQueryError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return AnalyticsResponse(
        income=[IncomeSchema.from_record(r, sender=r.sender) for r in analytics.incomes],
        expense=[ExpenseSchema.from_record(r, sent_to=r.sent_to) for r in analytics.expenses],
        wealth_fund=[WealthFundSchema.from_record(r, liquid=r.liquid) for r in analytics.wealth_fund],
    )
