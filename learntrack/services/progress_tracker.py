"""Progress tracker - one current-state progress record per (learner, lesson).

Every write is a single ``INSERT ... ON CONFLICT DO UPDATE`` against the
``uq_lesson_progress_learner_lesson`` constraint, so concurrent writes to the
same pair (two open tabs, a retried request) always land on one row. The
state rules are applied inside the UPDATE clause itself:

- ``time_spent_seconds`` accumulates, it is never overwritten.
- ``status`` only moves forward: not_started -> in_progress -> completed.
  ``completed`` is terminal.
- ``progress_percentage`` never decreases, and it is 100 whenever the
  status is ``completed``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import and_, case, distinct, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.errors import InvalidArgument, NotFound, Unauthenticated
from learntrack.models.category import Category
from learntrack.models.lesson import Lesson
from learntrack.models.lesson_progress import (
    MAX_TIME_SPENT_DELTA,
    PROGRESS_STATUSES,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    LessonProgress,
)
from learntrack.models.topic import Topic
from learntrack.services.catalog import ContentCatalog

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _upsert_insert(db: AsyncSession):
    """Return the dialect-specific ``insert`` that supports ON CONFLICT."""
    dialect = db.bind.dialect.name
    try:
        return _DIALECT_INSERTS[dialect]
    except KeyError:
        raise RuntimeError(f"Progress upsert is not supported on {dialect!r}") from None


def _validate(
    learner_id: str | None,
    status: str,
    progress_percentage: int | None,
    time_spent_delta: int,
) -> None:
    if not learner_id:
        raise Unauthenticated("Please login to track your progress")
    if status not in PROGRESS_STATUSES:
        raise InvalidArgument(
            f"status must be one of: {', '.join(PROGRESS_STATUSES)}", field="status"
        )
    if progress_percentage is not None:
        if isinstance(progress_percentage, bool) or not isinstance(progress_percentage, int):
            raise InvalidArgument(
                "progressPercentage must be an integer", field="progressPercentage"
            )
        if not 0 <= progress_percentage <= 100:
            raise InvalidArgument(
                "progressPercentage must be between 0 and 100",
                field="progressPercentage",
            )
    if isinstance(time_spent_delta, bool) or not isinstance(time_spent_delta, int):
        raise InvalidArgument("timeSpent must be an integer", field="timeSpent")
    if time_spent_delta < 0:
        raise InvalidArgument("timeSpent must not be negative", field="timeSpent")
    if time_spent_delta > MAX_TIME_SPENT_DELTA:
        raise InvalidArgument(
            f"timeSpent must be at most {MAX_TIME_SPENT_DELTA} seconds", field="timeSpent"
        )


async def record_progress(
    db: AsyncSession,
    catalog: ContentCatalog,
    learner_id: str | None,
    lesson_id: int,
    status: str,
    progress_percentage: int | None = None,
    time_spent_delta: int = 0,
    *,
    notes: str | None = None,
) -> LessonProgress:
    """Create or update the learner's progress record for a lesson.

    Parameters
    ----------
    learner_id : str | None
        Verified learner id from the Identity Provider. ``None`` means the
        caller is anonymous and raises ``Unauthenticated``.
    lesson_id : int
        Catalog lesson id; ``NotFound`` if the catalog does not know it.
    status : str
        One of ``not_started``, ``in_progress``, ``completed``.
    progress_percentage : int | None
        0-100. ``None`` keeps the stored value. Ignored (forced to 100) when
        the lesson is or becomes completed, and ignored for a
        ``not_started`` ping, which never raises the stored value.
    time_spent_delta : int
        Seconds to add to the cumulative time spent, at most one day per call.
    notes : str | None
        Replaces the stored notes when given; ``None`` keeps them.
    """
    _validate(learner_id, status, progress_percentage, time_spent_delta)

    lesson = await catalog.get_lesson(lesson_id)
    if lesson is None:
        raise NotFound(f"Lesson {lesson_id} not found")

    now = datetime.now(timezone.utc)
    completing = status == STATUS_COMPLETED
    if completing:
        percentage = 100
    elif status == STATUS_NOT_STARTED:
        # A lesson that has not been started has made no progress
        percentage = 0
    else:
        percentage = progress_percentage or 0

    insert = _upsert_insert(db)
    stmt = insert(LessonProgress).values(
        learner_id=learner_id,
        lesson_id=lesson_id,
        status=status,
        progress_percentage=percentage,
        time_spent_seconds=time_spent_delta,
        notes=notes,
        started_at=now if status != STATUS_NOT_STARTED else None,
        completed_at=now if completing else None,
        updated_at=now,
    )

    current = LessonProgress.__table__.c
    incoming = stmt.excluded
    either_completed = or_(
        current.status == STATUS_COMPLETED, incoming.status == STATUS_COMPLETED
    )
    either_started = or_(
        current.status == STATUS_IN_PROGRESS, incoming.status == STATUS_IN_PROGRESS
    )

    stmt = stmt.on_conflict_do_update(
        index_elements=[current.learner_id, current.lesson_id],
        set_={
            # Completion is sticky: once stored, no later ping can undo it
            "status": case(
                (either_completed, STATUS_COMPLETED),
                (either_started, STATUS_IN_PROGRESS),
                else_=STATUS_NOT_STARTED,
            ),
            "progress_percentage": case(
                (either_completed, 100),
                (
                    incoming.progress_percentage > current.progress_percentage,
                    incoming.progress_percentage,
                ),
                else_=current.progress_percentage,
            ),
            "time_spent_seconds": current.time_spent_seconds + incoming.time_spent_seconds,
            "notes": func.coalesce(incoming.notes, current.notes),
            "started_at": func.coalesce(current.started_at, incoming.started_at),
            "completed_at": func.coalesce(current.completed_at, incoming.completed_at),
            "updated_at": incoming.updated_at,
        },
    )
    await db.execute(stmt)
    await db.commit()

    result = await db.execute(
        select(LessonProgress)
        .where(
            LessonProgress.learner_id == learner_id,
            LessonProgress.lesson_id == lesson_id,
        )
        .execution_options(populate_existing=True)
    )
    progress = result.scalar_one()

    logger.info(
        "Progress learner=%s lesson=%s requested=%s stored=%s (%d%%, %ds)",
        learner_id,
        lesson_id,
        status,
        progress.status,
        progress.progress_percentage,
        progress.time_spent_seconds,
    )
    return progress


async def get_lesson_progress(
    db: AsyncSession, learner_id: str, lesson_id: int
) -> LessonProgress | None:
    """Return the learner's progress record for a lesson, if any."""
    result = await db.execute(
        select(LessonProgress).where(
            LessonProgress.learner_id == learner_id,
            LessonProgress.lesson_id == lesson_id,
        )
    )
    return result.scalar_one_or_none()


async def get_progress_summary(db: AsyncSession, learner_id: str | None) -> dict:
    """Count the learner's touched lessons per status."""
    if not learner_id:
        raise Unauthenticated("Please login to view your progress")

    result = await db.execute(
        select(
            LessonProgress.status,
            func.count(LessonProgress.id),
            func.coalesce(func.sum(LessonProgress.time_spent_seconds), 0),
        )
        .where(LessonProgress.learner_id == learner_id)
        .group_by(LessonProgress.status)
    )

    counts = {s: 0 for s in PROGRESS_STATUSES}
    total_time = 0
    for status, count, seconds in result.all():
        counts[status] = count
        total_time += seconds

    return {
        "completed": counts[STATUS_COMPLETED],
        "in_progress": counts[STATUS_IN_PROGRESS],
        "not_started": counts[STATUS_NOT_STARTED],
        "total_tracked": sum(counts.values()),
        "total_time_spent_seconds": total_time,
    }


async def get_progress_overview(db: AsyncSession, learner_id: str | None) -> dict:
    """Per-category completion plus the most recently accessed lessons."""
    if not learner_id:
        raise Unauthenticated("Please login to view your progress")

    # Untouched lessons count as 0%, completed ones as 100%
    lesson_pct = case(
        (LessonProgress.status == STATUS_COMPLETED, 100),
        else_=func.coalesce(LessonProgress.progress_percentage, 0),
    )
    category_rows = await db.execute(
        select(
            Category.name,
            Category.slug,
            func.count(distinct(Lesson.id)).label("total_lessons"),
            func.count(
                distinct(case((LessonProgress.status == STATUS_COMPLETED, Lesson.id)))
            ).label("completed_lessons"),
            func.coalesce(func.avg(lesson_pct), 0).label("progress_percentage"),
        )
        .join(Topic, Topic.category_id == Category.id)
        .join(Lesson, Lesson.topic_id == Topic.id)
        .outerjoin(
            LessonProgress,
            and_(
                LessonProgress.lesson_id == Lesson.id,
                LessonProgress.learner_id == learner_id,
            ),
        )
        .group_by(Category.id, Category.name, Category.slug, Category.order_index)
        .order_by(Category.order_index.asc(), Category.id.asc())
    )
    categories = [
        {
            "category_name": row.name,
            "category_slug": row.slug,
            "total_lessons": row.total_lessons,
            "completed_lessons": row.completed_lessons,
            "progress_percentage": round(float(row.progress_percentage), 1),
        }
        for row in category_rows.all()
    ]

    recent_rows = await db.execute(
        select(LessonProgress, Lesson.title, Lesson.slug, Topic.name, Category.name)
        .join(Lesson, LessonProgress.lesson_id == Lesson.id)
        .outerjoin(Topic, Lesson.topic_id == Topic.id)
        .outerjoin(Category, Topic.category_id == Category.id)
        .where(LessonProgress.learner_id == learner_id)
        .order_by(LessonProgress.updated_at.desc(), LessonProgress.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
    )
    recent = [
        {
            "progress": progress,
            "lesson_title": title,
            "lesson_slug": slug,
            "topic_name": topic_name,
            "category_name": category_name,
        }
        for progress, title, slug, topic_name, category_name in recent_rows.all()
    ]

    return {"category_progress": categories, "recent_activity": recent}
