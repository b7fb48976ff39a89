# src/ama_global/api/v1/endpoints/tags.py
"""Tag listing and tag subscription endpoints."""

from fastapi import APIRouter, Response, status

from ama_global.api.v1.dependencies import EngagementServiceDep, QuestionFeedDep
from ama_global.schemas.engagement import TagSubscriptionResponse
from ama_global.schemas.question import TagSummary

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=list[TagSummary])
async def list_tags(feed: QuestionFeedDep) -> list[TagSummary]:
    """Return every tag in use, most used first."""
    feed.load_questions()
    return [TagSummary(tag=tag, count=count) for tag, count in feed.tag_counts()]


@router.get("/subscriptions", response_model=list[TagSubscriptionResponse])
async def list_subscriptions(engagement: EngagementServiceDep) -> list[TagSubscriptionResponse]:
    return [TagSubscriptionResponse.model_validate(s) for s in engagement.subscriptions()]


@router.post(
    "/subscriptions/{tag}",
    response_model=TagSubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def subscribe_tag(tag: str, engagement: EngagementServiceDep) -> TagSubscriptionResponse:
    return TagSubscriptionResponse.model_validate(engagement.subscribe(tag))


@router.delete("/subscriptions/{tag}", status_code=status.HTTP_204_NO_CONTENT)
async def unsubscribe_tag(tag: str, engagement: EngagementServiceDep) -> Response:
    engagement.unsubscribe(tag)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
