from typing import Any, Dict

from fastapi import APIRouter, Depends

from dependencies import get_current_user, get_subscription_service
from responses import ok
from services.subscriptions import SubscriptionService

router = APIRouter()


@router.post("/c/{channel_id}")
def toggle_subscription(
    channel_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.toggle_subscription(channel_id, current_user["_id"])
    return ok(result, "Subscribed successfully" if result["is_subscribed"] else "Unsubscribed successfully")


@router.get("/c/{channel_id}/subscribers")
def get_channel_subscribers(
    channel_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscribers = service.channel_subscribers(channel_id)
    if not subscribers:
        return ok(subscribers, "This channel has no subscribers yet")
    return ok(subscribers, "Subscribers fetched successfully")


@router.get("/u/{subscriber_id}/subscriptions")
def get_subscribed_channels(
    subscriber_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    channels = service.subscribed_channels(subscriber_id)
    if not channels:
        return ok(channels, "No subscribed channels")
    return ok(channels, "Subscribed channels fetched successfully")
