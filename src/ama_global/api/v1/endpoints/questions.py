# src/ama_global/api/v1/endpoints/questions.py
"""Question feed and question detail endpoints."""

from fastapi import APIRouter, Query, status

from ama_global.api.v1.dependencies import (
    NotifierDep,
    QuestionFeedDep,
    QuestionThreadDep,
    ShareServiceDep,
    notices_of,
)
from ama_global.schemas.question import (
    AnswerCreate,
    AnswerResponse,
    QuestionCreate,
    QuestionCreateResponse,
    QuestionDetailResponse,
    QuestionFeedResponse,
    QuestionResponse,
    VoteRequest,
    VoteResponse,
)
from ama_global.schemas.share import ShareCreate, ShareResponse

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("/", response_model=QuestionFeedResponse)
async def list_questions(
    feed: QuestionFeedDep,
    notifier: NotifierDep,
    sort: str = Query("newest", description="newest, oldest, votes, answers, username-az or username-za"),
    tag: str | None = Query(None, description="Only questions carrying this tag"),
    username: str | None = Query(None, description="Questions by or asked to this user"),
) -> QuestionFeedResponse:
    """Return the global feed, degraded to local data when the backend is down."""
    feed.load_questions()
    if tag:
        feed.questions = feed.questions_for_tag(tag)
    if username:
        feed.questions = feed.questions_for_user(username)
    questions = feed.sorted_questions(sort)
    return QuestionFeedResponse(
        questions=[QuestionResponse.model_validate(q) for q in questions],
        offline=not feed.store.is_remote or bool(getattr(feed.store, "degraded", False)),
        warning=feed.warning,
        notices=notices_of(notifier),
    )


@router.post("/", response_model=QuestionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_question(
    payload: QuestionCreate,
    feed: QuestionFeedDep,
    notifier: NotifierDep,
) -> QuestionCreateResponse:
    """Ask a question as the signed-in user, a named guest or anonymously."""
    question = feed.create_question(
        title=payload.title,
        content=payload.content,
        tags=payload.tags,
        asker_name=payload.asker_name,
        is_anonymous=payload.is_anonymous,
        content_type=payload.content_type,
        target_username=payload.target_username,
    )
    return QuestionCreateResponse(
        question=QuestionResponse.model_validate(question),
        confirmed=not feed.pending,
        notices=notices_of(notifier),
    )


@router.get("/{question_id}", response_model=QuestionDetailResponse)
async def get_question(
    question_id: str,
    thread: QuestionThreadDep,
    notifier: NotifierDep,
) -> QuestionDetailResponse:
    question, answers = thread.load(question_id)
    return QuestionDetailResponse(
        question=QuestionResponse.model_validate(question),
        answers=[AnswerResponse.model_validate(a) for a in answers],
        notices=notices_of(notifier),
    )


@router.post("/{question_id}/vote", response_model=VoteResponse)
async def vote_on_question(
    question_id: str,
    payload: VoteRequest,
    feed: QuestionFeedDep,
    notifier: NotifierDep,
) -> VoteResponse:
    """Cast, repeat or switch the current user's vote on a question."""
    total = feed.vote_on_question(question_id, payload.direction)
    return VoteResponse(target_id=question_id, votes=total, notices=notices_of(notifier))


@router.post(
    "/{question_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_answer(
    question_id: str,
    payload: AnswerCreate,
    thread: QuestionThreadDep,
) -> AnswerResponse:
    answer = thread.post_answer(question_id, payload.content)
    return AnswerResponse.model_validate(answer)


@router.post(
    "/{question_id}/shares",
    response_model=ShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_question(
    question_id: str,
    payload: ShareCreate,
    shares: ShareServiceDep,
) -> ShareResponse:
    """Create a share link that lets others answer this question directly."""
    share = shares.create_share(
        question_id,
        allow_anonymous=payload.allow_anonymous,
        require_auth=payload.require_auth,
    )
    return ShareResponse.model_validate(share)
