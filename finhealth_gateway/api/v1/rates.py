"""GET /v1/rates, POST /v1/rates/refresh - exchange rate snapshot"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from finhealth_gateway.api.dependencies import get_rate_table
from finhealth_gateway.api.v1.schemas import RateSchema, RatesResponse, RefreshResponse
from finhealth_gateway.config import settings
from finhealth_gateway.domain.currency import RateTable
from finhealth_gateway.domain.exceptions import RateProviderError

router = APIRouter()


@router.get("/rates", response_model=RatesResponse)
def get_rates(rate_table: RateTable = Depends(get_rate_table)):
    """Current snapshot, loading it first if the table is still empty"""
    rates = rate_table.snapshot()
    return RatesResponse(
        base_currency=settings.base_currency,
        loaded_at=rate_table.loaded_at,
        rates=[RateSchema.model_validate(rate) for _, rate in sorted(rates.items())],
    )


@router.post("/rates/refresh", response_model=RefreshResponse)
def refresh_rates(rate_table: RateTable = Depends(get_rate_table)):
    """Replace the whole snapshot with the provider's current rates"""
    try:
        count = rate_table.refresh()
    except RateProviderError as e:
        logging.error(f"Rate refresh failed: {e}")
        raise HTTPException(status_code=503, detail="Rate provider unavailable")

    return RefreshResponse(message="Exchange rates refreshed successfully", currencies=count, status_code=200)
