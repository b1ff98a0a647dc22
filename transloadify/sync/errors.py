"""Per-file reconciliation errors.

These never abort a sync run: the reconciler records them against the file
they concern and moves on.
"""

from transloadify.template_client.errors import SyncError


class ReconcileError(SyncError):
    """Base exception for per-file reconciliation failures."""
    pass


class OrphanedReferenceError(ReconcileError):
    """Raised when a file references a template that no longer exists remotely."""

    def __init__(self, file_path: str, template_id: str):
        super().__init__(
            f"{file_path} references template {template_id}, which does not exist remotely"
        )
        self.file_path = file_path
        self.template_id = template_id


class DuplicateReferenceError(ReconcileError):
    """Raised when two files in one run reference the same template id."""

    def __init__(self, file_path: str, template_id: str, first_path: str):
        super().__init__(
            f"{file_path} references template {template_id}, already claimed by {first_path}"
        )
        self.file_path = file_path
        self.template_id = template_id
        self.first_path = first_path
