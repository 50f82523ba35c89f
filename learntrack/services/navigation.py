"""Navigation resolver - previous/next lesson links within a topic."""

import logging

from learntrack.errors import Inconsistent, NotFound
from learntrack.models.lesson import Lesson
from learntrack.services.catalog import ContentCatalog

logger = logging.getLogger(__name__)


def _link(lesson: Lesson | None) -> dict | None:
    if lesson is None:
        return None
    return {"slug": lesson.slug, "title": lesson.title}


def neighbours(siblings: list[Lesson], lesson_id: int) -> tuple[Lesson | None, Lesson | None]:
    """Return the lessons directly before and after *lesson_id* in *siblings*.

    *siblings* must already be in (order_index, id) order. Raises
    ``ValueError`` if the lesson is not in the list.
    """
    ids = [s.id for s in siblings]
    i = ids.index(lesson_id)
    previous = siblings[i - 1] if i > 0 else None
    following = siblings[i + 1] if i + 1 < len(siblings) else None
    return previous, following


async def resolve_navigation(catalog: ContentCatalog, lesson_id: int) -> dict:
    """Compute ``{previous, next}`` links for a lesson.

    Raises ``NotFound`` for an unknown lesson and ``Inconsistent`` when the
    lesson is missing from its own topic's lesson list.
    """
    lesson = await catalog.get_lesson(lesson_id)
    if lesson is None:
        raise NotFound(f"Lesson {lesson_id} not found")

    siblings = []
    if lesson.topic_id is not None:
        siblings = await catalog.list_topic_lessons(lesson.topic_id)

    try:
        previous, following = neighbours(siblings, lesson.id)
    except ValueError:
        logger.error(
            "Catalog inconsistency: lesson id=%s slug=%s missing from topic %s "
            "(%d lessons listed)",
            lesson.id,
            lesson.slug,
            lesson.topic_id,
            len(siblings),
        )
        raise Inconsistent(
            f"Lesson {lesson.id} is not listed in its topic {lesson.topic_id}"
        ) from None

    return {"previous": _link(previous), "next": _link(following)}
