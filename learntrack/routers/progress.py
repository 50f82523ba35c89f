"""Lesson progress API routes."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.database import get_db
from learntrack.dependencies import get_catalog, get_current_learner, get_optional_learner
from learntrack.models.lesson_progress import MAX_TIME_SPENT_DELTA
from learntrack.schemas import CamelModel, ProgressOut, RequestModel
from learntrack.services.catalog import ContentCatalog
from learntrack.services.progress_tracker import (
    get_lesson_progress,
    get_progress_overview,
    get_progress_summary,
    record_progress,
)

router = APIRouter(prefix="/api/progress", tags=["progress"])


class ProgressUpdateRequest(RequestModel):
    status: Literal["not_started", "in_progress", "completed"]
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    time_spent: int = Field(default=0, ge=0, le=MAX_TIME_SPENT_DELTA)
    notes: str | None = None


class SummaryResponse(CamelModel):
    completed: int
    in_progress: int
    not_started: int
    total_tracked: int
    total_time_spent_seconds: int


class LessonProgressResponse(CamelModel):
    progress: ProgressOut | None


class CategoryProgressItem(CamelModel):
    category_name: str
    category_slug: str
    total_lessons: int
    completed_lessons: int
    progress_percentage: float


class RecentActivityItem(CamelModel):
    progress: ProgressOut
    lesson_title: str
    lesson_slug: str
    topic_name: str | None
    category_name: str | None


class OverviewResponse(CamelModel):
    category_progress: list[CategoryProgressItem]
    recent_activity: list[RecentActivityItem]


@router.post("/lesson/{lesson_id}", response_model=ProgressOut)
async def update_lesson_progress(
    lesson_id: int,
    body: ProgressUpdateRequest,
    learner_id: str = Depends(get_current_learner),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_catalog),
):
    """Record a lesson view, progress ping or completion."""
    return await record_progress(
        db,
        catalog,
        learner_id,
        lesson_id,
        body.status,
        body.progress_percentage,
        body.time_spent,
        notes=body.notes,
    )


@router.get("/lesson/{lesson_id}", response_model=LessonProgressResponse)
async def lesson_progress(
    lesson_id: int,
    learner_id: str | None = Depends(get_optional_learner),
    db: AsyncSession = Depends(get_db),
):
    """Return the caller's progress on one lesson (null when anonymous)."""
    if learner_id is None:
        return LessonProgressResponse(progress=None)
    return LessonProgressResponse(
        progress=await get_lesson_progress(db, learner_id, lesson_id)
    )


@router.get("/summary", response_model=SummaryResponse)
async def progress_summary(
    learner_id: str = Depends(get_current_learner),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard counts of completed / in-progress / not-started lessons."""
    return await get_progress_summary(db, learner_id)


@router.get("/overview", response_model=OverviewResponse)
async def progress_overview(
    learner_id: str = Depends(get_current_learner),
    db: AsyncSession = Depends(get_db),
):
    """Per-category progress and recent activity."""
    return await get_progress_overview(db, learner_id)
