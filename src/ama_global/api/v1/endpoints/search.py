# src/ama_global/api/v1/endpoints/search.py
"""Search endpoint."""

from fastapi import APIRouter, Query

from ama_global.api.v1.dependencies import NotifierDep, SearchServiceDep, notices_of
from ama_global.schemas.profile import ProfileSummary
from ama_global.schemas.question import QuestionResponse, SearchResponse

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/", response_model=SearchResponse)
async def search(
    search_service: SearchServiceDep,
    notifier: NotifierDep,
    q: str = Query("", description="Term matched against usernames, titles, content and tags"),
) -> SearchResponse:
    results = search_service.search(q)
    return SearchResponse(
        users=[ProfileSummary.model_validate(u) for u in results.users],
        questions=[QuestionResponse.model_validate(question) for question in results.questions],
        notices=notices_of(notifier),
    )
