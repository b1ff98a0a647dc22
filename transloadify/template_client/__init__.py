"""Client library for the Transloadit template service.

This package provides the RemoteTemplateClient capability consumed by the
sync engine, plus a requests-based implementation of it.
"""

from .errors import (
    SyncError,
    TemplateClientError,
    InvalidCredentialsError,
    NotFoundError,
    InvalidTemplateIdError,
    RemoteRejectedError,
    RemoteUnavailableError,
    APIAccessError,
)
from .models import RemoteTemplate, RemoteTemplateClient, TemplatePage

__all__ = [
    "SyncError",
    "TemplateClientError",
    "InvalidCredentialsError",
    "NotFoundError",
    "InvalidTemplateIdError",
    "RemoteRejectedError",
    "RemoteUnavailableError",
    "APIAccessError",
    "RemoteTemplate",
    "RemoteTemplateClient",
    "TemplatePage",
]
