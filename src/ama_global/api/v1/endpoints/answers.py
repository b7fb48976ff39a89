# src/ama_global/api/v1/endpoints/answers.py
"""Answer voting, acceptance and comment endpoints."""

from fastapi import APIRouter, status

from ama_global.api.v1.dependencies import (
    NotifierDep,
    QuestionFeedDep,
    QuestionThreadDep,
    notices_of,
)
from ama_global.schemas.question import (
    AnswerResponse,
    CommentCreate,
    CommentResponse,
    VoteRequest,
    VoteResponse,
)

router = APIRouter(prefix="/answers", tags=["answers"])


@router.post("/{answer_id}/vote", response_model=VoteResponse)
async def vote_on_answer(
    answer_id: str,
    payload: VoteRequest,
    feed: QuestionFeedDep,
    notifier: NotifierDep,
) -> VoteResponse:
    total = feed.vote_on_answer(answer_id, payload.direction)
    return VoteResponse(target_id=answer_id, votes=total, notices=notices_of(notifier))


@router.post("/{answer_id}/accept", response_model=AnswerResponse)
async def accept_answer(answer_id: str, thread: QuestionThreadDep) -> AnswerResponse:
    """Mark an answer as the accepted one for its question."""
    return AnswerResponse.model_validate(thread.accept_answer(answer_id))


@router.post(
    "/{answer_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_comment(
    answer_id: str,
    payload: CommentCreate,
    thread: QuestionThreadDep,
) -> CommentResponse:
    return CommentResponse.model_validate(thread.post_comment(answer_id, payload.content))
