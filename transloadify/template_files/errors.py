"""Typed exception hierarchy for local template file errors.

All exceptions inherit from TemplateFileError so callers can catch every
local-side failure in one place.
"""

from typing import Optional

from transloadify.template_client.errors import SyncError


class TemplateFileError(SyncError):
    """Base exception for all local template file errors."""
    pass


class FilesystemError(TemplateFileError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(TemplateFileError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class MalformedTemplateFileError(TemplateFileError):
    """Raised when a template file is not a readable JSON object."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"Malformed template file {file_path}: {reason}")
        self.file_path = file_path
        self.reason = reason


class CycleDetectedError(TemplateFileError):
    """Raised when a recursive walk reaches the same directory twice."""

    def __init__(self, directory: str):
        super().__init__(f"Directory cycle detected at {directory}")
        self.directory = directory
