"""Quiz grading - scores submissions against the catalog's answer key.

Answers are always re-graded server-side; nothing the client sends is taken
as already graded. Every submission appends a QuizAttempt row. Only the
first correct attempt per question counts toward a learner's point total.
"""

from __future__ import annotations

import logging

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.config import settings
from learntrack.errors import InvalidArgument, NotFound, Unauthenticated
from learntrack.models.quiz_attempt import QuizAttempt
from learntrack.models.quiz_question import QuizQuestion
from learntrack.services.catalog import ContentCatalog

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = "easy"


def points_for(question: QuizQuestion, points_table: dict[str, int] | None = None) -> int:
    """Return the points a correct answer to *question* is worth.

    The configured difficulty table wins. A question whose difficulty is not
    in the table falls back to its own ``points`` column, then to the
    table's ``easy`` value. The result is always positive.
    """
    table = settings.QUIZ_POINTS if points_table is None else points_table
    if question.difficulty in table:
        return table[question.difficulty]
    if question.points and question.points > 0:
        return question.points
    return table.get(DEFAULT_DIFFICULTY) or min(table.values())


def grade(question: QuizQuestion, submitted_answer: str) -> tuple[bool, int]:
    """Grade one answer. Returns ``(is_correct, points_earned)``."""
    is_correct = submitted_answer == question.correct_answer
    return is_correct, points_for(question) if is_correct else 0


async def submit_answer(
    db: AsyncSession,
    catalog: ContentCatalog,
    learner_id: str | None,
    question_id: int,
    submitted_answer: str | None,
) -> dict:
    """Grade and persist a quiz submission.

    Returns the outcome together with the correct answer and explanation;
    this is the only place the answer key is ever revealed.
    """
    if not learner_id:
        raise Unauthenticated("Please login to submit quiz answers")
    if not isinstance(submitted_answer, str) or not submitted_answer.strip():
        raise InvalidArgument("userAnswer must not be empty", field="userAnswer")

    question = await catalog.get_question(question_id)
    if question is None:
        raise NotFound(f"Question {question_id} not found")

    is_correct, points_earned = grade(question, submitted_answer)

    previous_attempts = (
        await db.execute(
            select(func.count(QuizAttempt.id)).where(
                QuizAttempt.learner_id == learner_id,
                QuizAttempt.question_id == question_id,
            )
        )
    ).scalar() or 0

    attempt = QuizAttempt(
        learner_id=learner_id,
        question_id=question_id,
        submitted_answer=submitted_answer,
        is_correct=is_correct,
        points_earned=points_earned,
        attempt_number=previous_attempts + 1,
    )
    db.add(attempt)
    await db.commit()
    await db.refresh(attempt)

    logger.info(
        "Quiz attempt learner=%s question=%s attempt=%d correct=%s points=%d",
        learner_id,
        question_id,
        attempt.attempt_number,
        is_correct,
        points_earned,
    )

    return {
        "is_correct": is_correct,
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
        "points_earned": points_earned,
        "attempt_number": attempt.attempt_number,
    }


async def get_quiz_stats(db: AsyncSession, learner_id: str | None) -> dict:
    """Aggregate a learner's attempt history."""
    if not learner_id:
        raise Unauthenticated("Please login to view your quiz statistics")

    total_attempts, correct_answers = (
        await db.execute(
            select(
                func.count(QuizAttempt.id),
                func.count(case((QuizAttempt.is_correct.is_(True), 1))),
            ).where(QuizAttempt.learner_id == learner_id)
        )
    ).one()

    first_correct = (
        select(func.min(QuizAttempt.id))
        .where(QuizAttempt.learner_id == learner_id, QuizAttempt.is_correct.is_(True))
        .group_by(QuizAttempt.question_id)
    )
    total_points, questions_solved = (
        await db.execute(
            select(
                func.coalesce(func.sum(QuizAttempt.points_earned), 0),
                func.count(QuizAttempt.id),
            ).where(QuizAttempt.id.in_(first_correct))
        )
    ).one()

    accuracy = round(correct_answers / total_attempts * 100, 2) if total_attempts else 0.0

    return {
        "total_attempts": total_attempts,
        "correct_answers": correct_answers,
        "questions_solved": questions_solved,
        "total_points": total_points,
        "accuracy_percentage": accuracy,
    }


async def list_lesson_attempts(
    db: AsyncSession, learner_id: str, lesson_id: int
) -> list[dict]:
    """Return the learner's attempts on a lesson's questions, newest first."""
    result = await db.execute(
        select(QuizAttempt, QuizQuestion.question_text, QuizQuestion.question_type)
        .join(QuizQuestion, QuizAttempt.question_id == QuizQuestion.id)
        .where(QuizAttempt.learner_id == learner_id, QuizQuestion.lesson_id == lesson_id)
        .order_by(QuizAttempt.submitted_at.desc(), QuizAttempt.id.desc())
    )
    return [
        {
            "id": attempt.id,
            "question_id": attempt.question_id,
            "question_text": question_text,
            "question_type": question_type,
            "submitted_answer": attempt.submitted_answer,
            "is_correct": attempt.is_correct,
            "points_earned": attempt.points_earned,
            "attempt_number": attempt.attempt_number,
            "submitted_at": attempt.submitted_at,
        }
        for attempt, question_text, question_type in result.all()
    ]
