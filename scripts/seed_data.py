"""Seed the database with a starter catalog (categories, topics, lessons, quizzes).

Usage: python scripts/seed_data.py
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from learntrack.config import settings
from learntrack.database import init_db, async_session
from learntrack.models import Category, CodeExample, Lesson, QuizQuestion, Topic


SEED_CATALOG = [
    {
        "name": "Backend Development",
        "slug": "backend",
        "description": "OOP, design patterns and backend development",
        "order_index": 1,
        "topics": [
            {
                "name": "REST API Development",
                "slug": "api-development",
                "description": "Design and build RESTful APIs",
                "difficulty_level": "beginner",
                "order_index": 1,
                "lessons": [
                    {
                        "title": "REST Principles with Express",
                        "slug": "rest-principles-express",
                        "summary": "Resources, verbs and status codes.",
                        "content": "# REST Principles\n\nResources are nouns, HTTP methods are verbs.",
                        "difficulty_level": "beginner",
                        "estimated_time": 30,
                        "order_index": 1,
                        "code_examples": [
                            {
                                "title": "Creating a resource",
                                "language": "javascript",
                                "code": "app.post('/users', (req, res) => res.status(201).json(req.body));",
                                "explanation": "POST creates a resource and answers 201 Created.",
                            },
                        ],
                        "questions": [
                            {
                                "question_text": "Which HTTP method should be used to create a new resource?",
                                "options": ["GET", "POST", "PUT", "PATCH"],
                                "correct_answer": "POST",
                                "explanation": "POST is used to create new resources. The server "
                                "generates the resource ID and returns 201 Created.",
                                "difficulty": "easy",
                            },
                            {
                                "question_text": "What status code should a successful DELETE return?",
                                "options": ["200 OK", "201 Created", "204 No Content", "404 Not Found"],
                                "correct_answer": "204 No Content",
                                "explanation": "204 No Content indicates the resource was deleted "
                                "and there is no body to return.",
                                "difficulty": "easy",
                            },
                        ],
                    },
                    {
                        "title": "Middleware, Validation and Errors",
                        "slug": "middleware-validation-errors",
                        "summary": "Request pipelines and centralised error handling.",
                        "content": "# Middleware\n\nMiddleware runs between the request and the handler.",
                        "difficulty_level": "beginner",
                        "estimated_time": 40,
                        "order_index": 2,
                        "questions": [
                            {
                                "question_text": "What makes an Express error-handling middleware "
                                "different from regular middleware?",
                                "options": [
                                    "It uses app.error()",
                                    "It has 4 parameters (err, req, res, next)",
                                    "It must be the first middleware",
                                    "It returns a Promise",
                                ],
                                "correct_answer": "It has 4 parameters (err, req, res, next)",
                                "explanation": "Express identifies error handlers by their arity.",
                                "difficulty": "medium",
                            },
                        ],
                    },
                    {
                        "title": "Authentication with JWT",
                        "slug": "authentication-jwt",
                        "summary": "Stateless authentication with signed tokens.",
                        "content": "# JWT\n\nA JWT is a signed set of claims.",
                        "difficulty_level": "intermediate",
                        "estimated_time": 45,
                        "order_index": 3,
                        "questions": [
                            {
                                "question_text": "Which part of a JWT prevents tampering?",
                                "options": ["Header", "Payload", "Signature", "Expiry"],
                                "correct_answer": "Signature",
                                "explanation": "The signature covers header and payload; any change "
                                "invalidates it.",
                                "difficulty": "hard",
                            },
                        ],
                    },
                ],
            },
        ],
    },
]


async def _upsert_by_slug(session, model, data: dict, **parent):
    """Insert or update a catalog row identified by its slug (idempotent)."""
    result = await session.execute(select(model).where(model.slug == data["slug"]))
    existing = result.scalar_one_or_none()
    if existing:
        for key, value in {**data, **parent}.items():
            setattr(existing, key, value)
        print(f"  Updated: {model.__tablename__} {data['slug']}")
        return existing
    row = model(**data, **parent)
    session.add(row)
    await session.flush()
    print(f"  Inserted: {model.__tablename__} {data['slug']}")
    return row


async def seed() -> None:
    # Ensure data directory exists
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    # Create tables
    await init_db()
    print("Database tables created.")

    async with async_session() as session:
        for category_data in SEED_CATALOG:
            topics = category_data.pop("topics")
            category = await _upsert_by_slug(session, Category, category_data)

            for topic_data in topics:
                lessons = topic_data.pop("lessons")
                topic = await _upsert_by_slug(
                    session, Topic, topic_data, category_id=category.id
                )

                for lesson_data in lessons:
                    questions = lesson_data.pop("questions", [])
                    examples = lesson_data.pop("code_examples", [])
                    lesson = await _upsert_by_slug(
                        session, Lesson, lesson_data, topic_id=topic.id
                    )

                    # Questions and examples have no natural key; only seed once
                    has_questions = (
                        await session.execute(
                            select(QuizQuestion.id).where(QuizQuestion.lesson_id == lesson.id)
                        )
                    ).first()
                    if has_questions is None:
                        for i, q in enumerate(questions, start=1):
                            session.add(QuizQuestion(
                                lesson_id=lesson.id,
                                question_type="multiple_choice",
                                order_index=i,
                                **q,
                            ))
                        for i, ex in enumerate(examples, start=1):
                            session.add(CodeExample(lesson_id=lesson.id, order_index=i, **ex))

        await session.commit()

    print("Seed data complete.")


if __name__ == "__main__":
    asyncio.run(seed())
