"""GET /v1/more - subscription, connected accounts and category settings"""

from fastapi import APIRouter, Depends

from finhealth_gateway.api.dependencies import get_current_user, get_profile_aggregator
from finhealth_gateway.api.v1.schemas import AppSchema, MoreResponse, SettingsSchema, SubscriptionSchema
from finhealth_gateway.services.aggregation import ProfileAggregator

router = APIRouter()


@router.get("/more", response_model=MoreResponse)
def get_more(
    user_id: str = Depends(get_current_user),
    aggregator: ProfileAggregator = Depends(get_profile_aggregator),
):
    """Missing sub-resources come back empty instead of failing the view"""
    more = aggregator.fetch_more(user_id)
    return MoreResponse(
        app=AppSchema.model_validate(more.app),
        settings=SettingsSchema(subscription=SubscriptionSchema.model_validate(more.subscription)),
    )
