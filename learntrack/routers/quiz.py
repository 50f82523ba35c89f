"""Quiz submission and statistics API routes."""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.database import get_db
from learntrack.dependencies import get_catalog, get_current_learner, get_optional_learner
from learntrack.schemas import CamelModel, RequestModel
from learntrack.services.catalog import ContentCatalog
from learntrack.services.quiz_grader import get_quiz_stats, list_lesson_attempts, submit_answer

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


class SubmitRequest(RequestModel):
    question_id: int
    user_answer: str


class SubmitResponse(CamelModel):
    is_correct: bool
    correct_answer: str
    explanation: str | None
    points_earned: int
    attempt_number: int


class StatsResponse(CamelModel):
    total_attempts: int
    correct_answers: int
    questions_solved: int
    total_points: int
    accuracy_percentage: float


class AttemptItem(CamelModel):
    id: int
    question_id: int
    question_text: str
    question_type: str
    submitted_answer: str
    is_correct: bool
    points_earned: int
    attempt_number: int
    submitted_at: datetime


class AttemptsResponse(CamelModel):
    attempts: list[AttemptItem]


@router.post("/submit", response_model=SubmitResponse)
async def submit(
    body: SubmitRequest,
    learner_id: str = Depends(get_current_learner),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_catalog),
):
    """Grade an answer. The answer key is only ever returned here."""
    return await submit_answer(db, catalog, learner_id, body.question_id, body.user_answer)


@router.get("/stats", response_model=StatsResponse)
async def stats(
    learner_id: str = Depends(get_current_learner),
    db: AsyncSession = Depends(get_db),
):
    """Return the caller's quiz statistics."""
    return await get_quiz_stats(db, learner_id)


@router.get("/lesson/{lesson_id}", response_model=AttemptsResponse)
async def lesson_attempts(
    lesson_id: int,
    learner_id: str | None = Depends(get_optional_learner),
    db: AsyncSession = Depends(get_db),
):
    """Return the caller's attempts on one lesson's questions."""
    if learner_id is None:
        return AttemptsResponse(attempts=[])
    return AttemptsResponse(attempts=await list_lesson_attempts(db, learner_id, lesson_id))
