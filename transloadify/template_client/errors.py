"""Typed exception hierarchy for template service errors.

This module defines the root of the transloadify exception tree and all
exceptions raised by the template client. Transport exceptions are translated
into these types at the client boundary so callers never see raw HTTP errors.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all transloadify errors.

    Use this to catch any application-level error from the tool.
    """
    pass


class TemplateClientError(SyncError):
    """Base exception for all remote template service errors."""
    pass


class InvalidCredentialsError(TemplateClientError):
    """Raised when API credentials are missing or rejected by the service."""

    def __init__(self, key: str, endpoint: str):
        super().__init__(
            f"API credentials are invalid (key: {key}, endpoint: {endpoint})"
        )
        self.key = key
        self.endpoint = endpoint


class NotFoundError(TemplateClientError):
    """Raised when a requested template does not exist."""

    def __init__(self, template_id: str):
        super().__init__(f"Template {template_id} not found")
        self.template_id = template_id


class RemoteRejectedError(TemplateClientError):
    """Raised when the service refuses a request (validation, duplicate name)."""

    def __init__(self, error_code: str, message: Optional[str] = None):
        if message:
            full_message = f"{error_code}: {message}"
        else:
            full_message = error_code
        super().__init__(full_message)
        self.error_code = error_code
        self.message = message


class RemoteUnavailableError(TemplateClientError):
    """Raised when the service cannot be reached or a listing page fails."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"Template service is not available at {endpoint}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class APIAccessError(TemplateClientError):
    """Raised when API access fails after retries or for unclassified reasons."""

    def __init__(self, message: str = "Template API failure (after 3 retries)"):
        super().__init__(message)


class InvalidTemplateIdError(TemplateClientError, ValueError):
    """Raised when a template id is empty or unsafe to place in a URL path."""

    def __init__(self, template_id: str, reason: str):
        super().__init__(f"Invalid template id '{template_id}': {reason}")
        self.template_id = template_id
        self.reason = reason
