"""Authentication middleware - resolves the bearer token to a learner id.

Authentication here is optional: a missing or rejected token leaves
``request.state.learner_id`` as None and the request continues anonymously.
Routes that need a learner depend on ``get_current_learner``.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from learntrack.errors import Unauthenticated, Unavailable
from learntrack.services.identity import get_identity_provider

logger = logging.getLogger(__name__)


def get_bearer_token(headers) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    auth = headers.get("authorization")
    if not auth:
        return None
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.learner_id = None
        request.state.auth_error = None

        token = get_bearer_token(request.headers)
        if token:
            try:
                request.state.learner_id = await get_identity_provider().verify(token)
            except Unauthenticated as e:
                logger.info("Rejected bearer token: %s", e.message)
                request.state.auth_error = e.message
            except Unavailable as e:
                return JSONResponse(status_code=e.status_code, content=e.to_dict())

        return await call_next(request)
