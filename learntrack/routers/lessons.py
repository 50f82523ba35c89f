"""Lesson view API route."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.database import get_db
from learntrack.dependencies import get_catalog, get_optional_learner
from learntrack.errors import Inconsistent, NotFound
from learntrack.schemas import CamelModel, NavigationOut, ProgressOut
from learntrack.services.catalog import ContentCatalog
from learntrack.services.navigation import resolve_navigation
from learntrack.services.progress_tracker import get_lesson_progress

router = APIRouter(prefix="/api/lessons", tags=["lessons"])


class LessonOut(CamelModel):
    id: int
    topic_id: int | None
    title: str
    slug: str
    summary: str | None
    content: str
    difficulty_level: str | None
    estimated_time: int | None
    order_index: int


class CodeExampleOut(CamelModel):
    id: int
    title: str
    description: str | None
    language: str
    code: str
    explanation: str | None
    order_index: int
    is_interactive: bool


class QuizQuestionOut(CamelModel):
    """Public question view; the answer key is never part of it."""

    id: int
    question_text: str
    question_type: str
    options: list
    difficulty: str | None
    order_index: int


class LessonViewResponse(CamelModel):
    lesson: LessonOut
    code_examples: list[CodeExampleOut]
    quiz_questions: list[QuizQuestionOut]
    user_progress: ProgressOut | None = None
    navigation: NavigationOut


@router.get("/{slug}", response_model=LessonViewResponse)
async def get_lesson(
    slug: str,
    learner_id: str | None = Depends(get_optional_learner),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_catalog),
):
    """Lesson content, plus the caller's progress and prev/next links."""
    lesson = await catalog.get_lesson_by_slug(slug)
    if lesson is None:
        raise NotFound("Lesson not found")

    code_examples = await catalog.list_code_examples(lesson.id)
    quiz_questions = await catalog.list_lesson_questions(lesson.id)

    user_progress = None
    if learner_id is not None:
        user_progress = await get_lesson_progress(db, learner_id, lesson.id)

    try:
        navigation = NavigationOut(**await resolve_navigation(catalog, lesson.id))
    except Inconsistent:
        # Already logged by the resolver; the lesson itself is still viewable
        navigation = NavigationOut(unavailable=True, message="Navigation unavailable")

    return LessonViewResponse(
        lesson=lesson,
        code_examples=code_examples,
        quiz_questions=quiz_questions,
        user_progress=user_progress,
        navigation=navigation,
    )
