# src/ama_global/api/v1/endpoints/shares.py
"""Share landing page endpoints."""

from fastapi import APIRouter, status

from ama_global.api.v1.dependencies import ShareServiceDep
from ama_global.schemas.question import AnswerResponse, QuestionResponse
from ama_global.schemas.share import (
    SharedQuestionResponse,
    ShareRespond,
    ShareRespondResponse,
)

router = APIRouter(prefix="/shares", tags=["shares"])


@router.get("/{share_code}", response_model=SharedQuestionResponse)
async def get_shared_question(share_code: str, shares: ShareServiceDep) -> SharedQuestionResponse:
    share, question = shares.load_shared_question(share_code)
    return SharedQuestionResponse(
        question=QuestionResponse.model_validate(question),
        allow_anonymous=bool(share.get("allow_anonymous")),
        require_auth=bool(share.get("require_auth")),
    )


@router.post(
    "/{share_code}/responses",
    response_model=ShareRespondResponse,
    status_code=status.HTTP_201_CREATED,
)
async def respond_to_shared_question(
    share_code: str,
    payload: ShareRespond,
    shares: ShareServiceDep,
) -> ShareRespondResponse:
    """Answer a shared question, anonymously when the share allows it."""
    answer = shares.respond(share_code, payload.content)
    return ShareRespondResponse(answer=AnswerResponse.model_validate(answer))
