"""Service layer - progress tracking, quiz grading, navigation and collaborators."""

from learntrack.services.catalog import ContentCatalog, SqlContentCatalog
from learntrack.services.identity import IdentityProvider, get_identity_provider

__all__ = [
    "ContentCatalog",
    "IdentityProvider",
    "SqlContentCatalog",
    "get_identity_provider",
]
