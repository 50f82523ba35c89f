"""Shared pydantic models. JSON field names are camelCase on the wire."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class RequestModel(CamelModel):
    """Inbound bodies: unknown fields are rejected, never ignored."""

    model_config = ConfigDict(extra="forbid")


class ProgressOut(CamelModel):
    learner_id: str
    lesson_id: int
    status: str
    progress_percentage: int
    time_spent_seconds: int
    notes: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    updated_at: datetime | None = None


class LessonLink(CamelModel):
    slug: str
    title: str


class NavigationOut(CamelModel):
    previous: LessonLink | None = None
    next: LessonLink | None = None
    # Set when the links could not be computed
    unavailable: bool = False
    message: str | None = None
