"""Content Catalog interface - read-only access to lessons and quiz questions.

The tracking services never write to the catalog. Every lookup is bounded by
``settings.CATALOG_TIMEOUT_SECONDS``; a lookup that runs past it raises
:class:`~learntrack.errors.Unavailable` instead of hanging the request.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.config import settings
from learntrack.errors import Unavailable
from learntrack.models.code_example import CodeExample
from learntrack.models.lesson import Lesson
from learntrack.models.quiz_question import QuizQuestion

logger = logging.getLogger(__name__)


class ContentCatalog(ABC):
    """Abstract interface for the read-only curriculum catalog."""

    @abstractmethod
    async def get_lesson(self, lesson_id: int) -> Lesson | None:
        """Return a lesson by id, or None if it does not exist."""

    @abstractmethod
    async def get_lesson_by_slug(self, slug: str) -> Lesson | None:
        """Return a lesson by slug, or None if it does not exist."""

    @abstractmethod
    async def list_topic_lessons(self, topic_id: int) -> list[Lesson]:
        """Return a topic's lessons in (order_index, id) order."""

    @abstractmethod
    async def get_question(self, question_id: int) -> QuizQuestion | None:
        """Return a question including its answer key. Grading use only."""

    @abstractmethod
    async def list_lesson_questions(self, lesson_id: int) -> list[dict]:
        """Return a lesson's questions without answers or explanations."""

    @abstractmethod
    async def list_code_examples(self, lesson_id: int) -> list[dict]:
        """Return a lesson's code examples."""


class SqlContentCatalog(ContentCatalog):
    """Catalog backed by the catalog tables of the relational database."""

    def __init__(self, db: AsyncSession, timeout: float | None = None) -> None:
        self._db = db
        self._timeout = settings.CATALOG_TIMEOUT_SECONDS if timeout is None else timeout

    async def _guarded(self, operation: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                "Catalog call %s timed out after %.1fs", operation, self._timeout
            )
            raise Unavailable(f"Catalog call {operation} timed out") from e

    # --- public API -------------------------------------------------------

    async def get_lesson(self, lesson_id: int) -> Lesson | None:
        return await self._guarded("get_lesson", self._get_lesson(lesson_id))

    async def get_lesson_by_slug(self, slug: str) -> Lesson | None:
        return await self._guarded("get_lesson_by_slug", self._get_lesson_by_slug(slug))

    async def list_topic_lessons(self, topic_id: int) -> list[Lesson]:
        return await self._guarded("list_topic_lessons", self._list_topic_lessons(topic_id))

    async def get_question(self, question_id: int) -> QuizQuestion | None:
        return await self._guarded("get_question", self._get_question(question_id))

    async def list_lesson_questions(self, lesson_id: int) -> list[dict]:
        return await self._guarded(
            "list_lesson_questions", self._list_lesson_questions(lesson_id)
        )

    async def list_code_examples(self, lesson_id: int) -> list[dict]:
        return await self._guarded(
            "list_code_examples", self._list_code_examples(lesson_id)
        )

    # --- queries ----------------------------------------------------------

    async def _get_lesson(self, lesson_id: int) -> Lesson | None:
        result = await self._db.execute(select(Lesson).where(Lesson.id == lesson_id))
        return result.scalar_one_or_none()

    async def _get_lesson_by_slug(self, slug: str) -> Lesson | None:
        result = await self._db.execute(select(Lesson).where(Lesson.slug == slug))
        return result.scalar_one_or_none()

    async def _list_topic_lessons(self, topic_id: int) -> list[Lesson]:
        # order_index alone is not unique; id makes the order total
        result = await self._db.execute(
            select(Lesson)
            .where(Lesson.topic_id == topic_id)
            .order_by(Lesson.order_index.asc(), Lesson.id.asc())
        )
        return list(result.scalars().all())

    async def _get_question(self, question_id: int) -> QuizQuestion | None:
        result = await self._db.execute(
            select(QuizQuestion).where(QuizQuestion.id == question_id)
        )
        return result.scalar_one_or_none()

    async def _list_lesson_questions(self, lesson_id: int) -> list[dict]:
        result = await self._db.execute(
            select(QuizQuestion)
            .where(QuizQuestion.lesson_id == lesson_id)
            .order_by(QuizQuestion.order_index.asc(), QuizQuestion.id.asc())
        )
        return [
            {
                "id": q.id,
                "question_text": q.question_text,
                "question_type": q.question_type,
                "options": q.options or [],
                "difficulty": q.difficulty,
                "order_index": q.order_index,
            }
            for q in result.scalars().all()
        ]

    async def _list_code_examples(self, lesson_id: int) -> list[dict]:
        result = await self._db.execute(
            select(CodeExample)
            .where(CodeExample.lesson_id == lesson_id)
            .order_by(CodeExample.order_index.asc(), CodeExample.id.asc())
        )
        return [
            {
                "id": ex.id,
                "title": ex.title,
                "description": ex.description,
                "language": ex.language,
                "code": ex.code,
                "explanation": ex.explanation,
                "order_index": ex.order_index,
                "is_interactive": ex.is_interactive,
            }
            for ex in result.scalars().all()
        ]
