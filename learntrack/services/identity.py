"""Identity Provider interface - turns a bearer token into a learner id.

This service never issues tokens. It either verifies them locally with the
shared signing secret (``IDENTITY_MODE=jwt``) or asks the auth service
(``IDENTITY_MODE=remote``).
"""

import logging
from abc import ABC, abstractmethod

import httpx
import jwt

from learntrack.config import settings
from learntrack.errors import Unauthenticated, Unavailable

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """Abstract interface for the external Identity Provider."""

    @abstractmethod
    async def verify(self, token: str) -> str:
        """Return the verified learner id, or raise ``Unauthenticated``."""


class JwtIdentityProvider(IdentityProvider):
    """Verifies HS256 tokens issued by the auth service with a shared secret."""

    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        learner_claim: str | None = None,
    ) -> None:
        self._secret = secret or settings.JWT_SECRET
        self._algorithm = algorithm or settings.JWT_ALGORITHM
        self._claim = learner_claim or settings.JWT_LEARNER_CLAIM

    async def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_aud": False},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthenticated("Token has expired") from None
        except jwt.InvalidTokenError:
            raise Unauthenticated("Invalid token") from None

        learner_id = payload.get(self._claim)
        if learner_id is None or learner_id == "":
            raise Unauthenticated(f"Token carries no {self._claim} claim")
        return str(learner_id)


class RemoteIdentityProvider(IdentityProvider):
    """Asks the auth service to verify the token over HTTP."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.IDENTITY_BASE_URL).rstrip("/")
        self._timeout = settings.IDENTITY_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    async def verify(self, token: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get(
                    f"{self._base_url}/api/auth/verify",
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.TimeoutException as e:
            logger.error("Identity provider timed out: %s", e)
            raise Unavailable("Identity provider timed out") from e
        except httpx.HTTPError as e:
            logger.error("Identity provider unreachable: %s", e)
            raise Unavailable("Identity provider unreachable") from e

        if resp.status_code in (401, 403):
            raise Unauthenticated("Invalid token")
        if resp.status_code != 200:
            logger.error("Identity provider returned HTTP %d", resp.status_code)
            raise Unavailable(f"Identity provider returned HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            logger.error("Identity provider returned a malformed reply: %.200r", resp.text)
            raise Unavailable("Identity provider returned a malformed reply")

        learner_id = payload.get("userId")
        if learner_id is None:
            raise Unauthenticated("Identity provider returned no user")
        return str(learner_id)


# Singleton instance
_identity_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """Factory: returns the JWT or remote provider based on config."""
    global _identity_provider
    if _identity_provider is None:
        if settings.IDENTITY_MODE == "remote":
            logger.info("Using RemoteIdentityProvider -> %s", settings.IDENTITY_BASE_URL)
            _identity_provider = RemoteIdentityProvider()
        else:
            logger.info("Using JwtIdentityProvider")
            _identity_provider = JwtIdentityProvider()
    return _identity_provider
