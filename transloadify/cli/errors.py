"""Typed exception hierarchy for CLI-related errors."""

from typing import List, Tuple

from transloadify.template_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class CommandFailedError(CLIError):
    """Raised by multi-id commands after every id was attempted and some failed.

    Attributes:
        command: Command name (e.g. "get", "delete")
        failures: (template_id, exception) pairs in input order
    """

    def __init__(self, command: str, failures: List[Tuple[str, Exception]]):
        ids = ", ".join(template_id for template_id, _ in failures)
        super().__init__(f"{command} failed for {len(failures)} template(s): {ids}")
        self.command = command
        self.failures = failures
