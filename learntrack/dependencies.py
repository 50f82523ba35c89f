"""FastAPI dependencies for route handlers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from learntrack.database import get_db
from learntrack.errors import Unauthenticated
from learntrack.services.catalog import ContentCatalog, SqlContentCatalog


def get_optional_learner(request: Request) -> str | None:
    """Learner id injected by AuthMiddleware, or None for anonymous callers."""
    return getattr(request.state, "learner_id", None)


def get_current_learner(request: Request) -> str:
    """Require a verified learner. Returns the learner id."""
    learner_id = get_optional_learner(request)
    if not learner_id:
        reason = getattr(request.state, "auth_error", None)
        raise Unauthenticated(reason or "Not authenticated")
    return learner_id


async def get_catalog(db: AsyncSession = Depends(get_db)) -> ContentCatalog:
    """Read-only Content Catalog bound to the request's session."""
    return SqlContentCatalog(db)
