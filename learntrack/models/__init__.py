"""ORM models package - exports all models and Base."""

from learntrack.database import Base
from learntrack.models.category import Category
from learntrack.models.topic import Topic
from learntrack.models.lesson import Lesson
from learntrack.models.code_example import CodeExample
from learntrack.models.quiz_question import QuizQuestion
from learntrack.models.lesson_progress import LessonProgress
from learntrack.models.quiz_attempt import QuizAttempt

__all__ = [
    "Base",
    "Category",
    "Topic",
    "Lesson",
    "CodeExample",
    "QuizQuestion",
    "LessonProgress",
    "QuizAttempt",
]
