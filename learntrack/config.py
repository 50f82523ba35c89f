"""Application settings loaded from environment variables / .env."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    DATA_DIR: Path = BASE_DIR / "data"
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'data' / 'learntrack.db'}"

    # Identity Provider collaborator: "jwt" verifies tokens locally with a
    # shared secret, "remote" asks the auth service over HTTP.
    IDENTITY_MODE: str = "jwt"
    JWT_SECRET: str = "change-me-in-production-use-a-long-random-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_LEARNER_CLAIM: str = "userId"
    IDENTITY_BASE_URL: str = "http://localhost:5000"
    IDENTITY_TIMEOUT_SECONDS: float = 5.0

    CATALOG_TIMEOUT_SECONDS: float = 5.0

    # Points awarded for a correct answer, keyed by question difficulty
    QUIZ_POINTS: dict[str, int] = {"easy": 10, "medium": 20, "hard": 30}

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @field_validator("QUIZ_POINTS")
    @classmethod
    def _points_positive(cls, value: dict[str, int]) -> dict[str, int]:
        if not value:
            raise ValueError("QUIZ_POINTS must define at least one difficulty")
        for difficulty, points in value.items():
            if points <= 0:
                raise ValueError(
                    f"QUIZ_POINTS[{difficulty!r}] must be positive, got {points}"
                )
        return value

    @field_validator("IDENTITY_MODE")
    @classmethod
    def _known_identity_mode(cls, value: str) -> str:
        if value not in ("jwt", "remote"):
            raise ValueError("IDENTITY_MODE must be 'jwt' or 'remote'")
        return value


settings = Settings()
