# src/ama_global/api/v1/endpoints/users.py
"""Profile listing, profile pages and follow endpoints."""

from fastapi import APIRouter

from ama_global.api.v1.dependencies import EngagementServiceDep
from ama_global.schemas.engagement import FollowResponse
from ama_global.schemas.profile import ProfileResponse, ProfileSummary
from ama_global.storage.base import Record

router = APIRouter(prefix="/users", tags=["users"])


def _follow_state(engagement: EngagementServiceDep, username: str, profile: Record) -> FollowResponse:
    return FollowResponse(
        following=engagement.is_following(username),
        followers_count=int(profile.get("followers_count") or 0),
    )


@router.get("/", response_model=list[ProfileSummary])
async def list_users(engagement: EngagementServiceDep) -> list[ProfileSummary]:
    return [ProfileSummary.model_validate(user) for user in engagement.list_users()]


@router.get("/{username}", response_model=ProfileResponse)
async def get_user_profile(username: str, engagement: EngagementServiceDep) -> ProfileResponse:
    return ProfileResponse.model_validate(engagement.profile(username))


@router.get("/{username}/follow", response_model=FollowResponse)
async def get_follow_state(username: str, engagement: EngagementServiceDep) -> FollowResponse:
    return _follow_state(engagement, username, engagement.profile(username))


@router.post("/{username}/follow", response_model=FollowResponse)
async def follow_user(username: str, engagement: EngagementServiceDep) -> FollowResponse:
    """Follow a user; following twice is a no-op."""
    return _follow_state(engagement, username, engagement.follow(username))


@router.delete("/{username}/follow", response_model=FollowResponse)
async def unfollow_user(username: str, engagement: EngagementServiceDep) -> FollowResponse:
    return _follow_state(engagement, username, engagement.unfollow(username))
