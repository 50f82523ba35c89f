"""Lesson ORM model (catalog)."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from learntrack.database import Base


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Nullable like the original schema; a lesson without a topic cannot be
    # navigated and is reported as a catalog inconsistency.
    topic_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(String(300), unique=True, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    difficulty_level: Mapped[str | None] = mapped_column(String(20), nullable=True)
    estimated_time: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Not unique within a topic; navigation breaks ties on id
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    topic: Mapped["Topic"] = relationship("Topic", back_populates="lessons")
    code_examples: Mapped[list["CodeExample"]] = relationship(
        "CodeExample", back_populates="lesson"
    )
    quiz_questions: Mapped[list["QuizQuestion"]] = relationship(
        "QuizQuestion", back_populates="lesson"
    )
