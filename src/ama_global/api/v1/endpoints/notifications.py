# src/ama_global/api/v1/endpoints/notifications.py
"""Notification inbox endpoints."""

from fastapi import APIRouter, Query

from ama_global.api.v1.dependencies import EngagementServiceDep
from ama_global.schemas.engagement import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    engagement: EngagementServiceDep,
    unread_only: bool = Query(False),
) -> list[NotificationResponse]:
    notifications = engagement.notifications(unread_only=unread_only)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post("/read")
async def mark_all_read(engagement: EngagementServiceDep) -> dict[str, int]:
    return {"updated": engagement.mark_read()}


@router.post("/{notification_id}/read")
async def mark_read(notification_id: str, engagement: EngagementServiceDep) -> dict[str, int]:
    return {"updated": engagement.mark_read(notification_id)}
