"""
Quiz endpoints: grounded question generation, attempts, per-question
progress, resets and question top-up.
"""

import uuid

from fastapi import APIRouter, HTTPException, status

from lectern.ai.quiz_generator import MIN_LESSON_CHARS, generate_quiz_question, lesson_too_short
from lectern.api.deps import CurrentUser, DbSession
from lectern.engines.quiz.quiz_service import QuizService
from lectern.engines.usage.token_usage import record_token_usage
from lectern.logging_config import get_logger
from lectern.schemas.common import SuccessResponse
from lectern.schemas.lectures import QuestionOut
from lectern.schemas.quiz import (
    ProgressItem,
    ProgressResponse,
    ProgressSaveRequest,
    QuestionsResponse,
    QuestionsTopUpRequest,
    QuizGenerateRequest,
    QuizGenerateResponse,
    QuizAttemptRequest,
    QuizAttemptResponse,
    QuizResetRequest,
)

logger = get_logger(__name__)

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


@router.post("", response_model=QuizGenerateResponse)
async def generate_question(data: QuizGenerateRequest, user: CurrentUser, db: DbSession):
    """One multiple-choice question grounded in `lesson_md`."""
    if lesson_too_short(data.lesson_md):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"lesson_md of at least {MIN_LESSON_CHARS} characters is required",
        )
    quiz = await generate_quiz_question(
        data.lesson_md.strip(),
        subtopic_title=data.subtopic_title,
        difficulty=data.difficulty,
    )
    if quiz.tokens_input or quiz.tokens_output:
        await record_token_usage(
            db,
            user_id=user.id,
            route="quiz",
            model=quiz.model,
            tokens_input=quiz.tokens_input,
            tokens_output=quiz.tokens_output,
        )
    logger.info("Quiz question generated", extra={"model": quiz.model, "fallback": quiz.fallback})
    return QuizGenerateResponse(
        questions=[q.model_dump() for q in quiz.questions],
        model=quiz.model,
        fallback=quiz.fallback,
    )


@router.post("/attempt", response_model=QuizAttemptResponse)
async def record_attempt(data: QuizAttemptRequest, user: CurrentUser, db: DbSession):
    """Store an answer and bump the daily streak."""
    try:
        streak = await QuizService(db).record_attempt(
            user,
            question_id=data.question_id,
            selected_index=data.selected_index,
            is_correct=data.is_correct,
        )
    except LookupError:
        raise _not_found()
    return QuizAttemptResponse(streak=streak)


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(subtopic_id: uuid.UUID, user: CurrentUser, db: DbSession):
    """Visible progress for a subtopic; anything older than the latest reset is hidden."""
    try:
        rows = await QuizService(db).get_progress(user.id, subtopic_id)
    except LookupError:
        raise _not_found()
    return ProgressResponse(progress=[ProgressItem.model_validate(r) for r in rows])


@router.post("/progress", response_model=SuccessResponse)
async def save_progress(data: ProgressSaveRequest, user: CurrentUser, db: DbSession):
    if data.subtopic_id is None or not data.updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="subtopic_id and updates are required",
        )
    try:
        applied = await QuizService(db).save_progress(
            user.id,
            data.subtopic_id,
            [u.model_dump(exclude_unset=True) for u in data.updates],
        )
    except LookupError:
        raise _not_found()
    return SuccessResponse(data={"applied": applied})


@router.post("/reset", response_model=SuccessResponse)
async def reset_quiz(data: QuizResetRequest, user: CurrentUser, db: DbSession):
    """Hide current progress for a subtopic. Attempts are kept."""
    if data.subtopic_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="subtopic_id required")
    try:
        await QuizService(db).reset(user.id, data.subtopic_id)
    except LookupError:
        raise _not_found()
    return SuccessResponse()


@router.post("/questions", response_model=QuestionsResponse)
async def top_up_questions(data: QuestionsTopUpRequest, user: CurrentUser, db: DbSession):
    """Fill a subtopic up to two questions from the submitted candidates."""
    if data.subtopic_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="subtopic_id is required")
    try:
        questions = await QuizService(db).top_up_questions(user.id, data.subtopic_id, data.questions)
    except LookupError:
        raise _not_found()
    return QuestionsResponse(questions=[QuestionOut.model_validate(q) for q in questions])
