"""Data models for sync results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from transloadify.template_files.errors import TemplateFileError


class FileOutcome(str, Enum):
    """What happened to one template file during a sync run.

    - CREATED: template created remotely, id written into the file
    - UPDATED: remote name and/or content modified
    - PULLED: bare reference file filled in with the remote content
    - UNCHANGED: local and remote already agree
    - SKIPPED: file not processed (orphaned or duplicate reference)
    - ERRORED: a remote or filesystem operation failed
    """
    CREATED = "created"
    UPDATED = "updated"
    PULLED = "pulled"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    ERRORED = "errored"


MUTATING_OUTCOMES = {FileOutcome.CREATED, FileOutcome.UPDATED}

FAILED_OUTCOMES = {FileOutcome.SKIPPED, FileOutcome.ERRORED}


@dataclass
class PlannedOperation:
    """One remote or local operation the reconciler intends to perform.

    Attributes:
        action: "create", "modify", "pull" or "skip"
        path: Template file the operation concerns
        template_id: Remote id (None for creates)
        fields: Fields a modify would change ("name", "content")
        reason: Explanation for skips
    """
    action: str
    path: Path
    template_id: Optional[str] = None
    fields: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def describe(self) -> str:
        """One-line human readable form used for dry-run output."""
        if self.action == "create":
            return f"create {self.path}"
        if self.action == "modify":
            return f"modify {self.template_id} ({', '.join(self.fields)}) from {self.path}"
        if self.action == "pull":
            return f"pull {self.template_id} into {self.path}"
        return f"skip {self.path}: {self.reason}"


@dataclass
class FileResult:
    """Outcome for one template file.

    Attributes:
        path: The template file
        outcome: What happened
        template_id: Remote id after the run (None if creation failed)
        error: Exception explaining a SKIPPED or ERRORED outcome
    """
    path: Path
    outcome: FileOutcome
    template_id: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.outcome in FAILED_OUTCOMES


@dataclass
class SyncReport:
    """Result of a sync run.

    Attributes:
        results: Per-file results in walk order
        unreadable: Candidate files the walker could not parse
        planned: Operations computed for a dry run (empty otherwise)
    """
    results: List[FileResult] = field(default_factory=list)
    unreadable: List[TemplateFileError] = field(default_factory=list)
    planned: List[PlannedOperation] = field(default_factory=list)

    @property
    def succeeded(self) -> List[FileResult]:
        return [result for result in self.results if not result.failed]

    @property
    def failed(self) -> List[FileResult]:
        return [result for result in self.results if result.failed]

    @property
    def mutation_count(self) -> int:
        """Number of files that caused a remote mutation."""
        return sum(1 for result in self.results if result.outcome in MUTATING_OUTCOMES)

    @property
    def ok(self) -> bool:
        """True if every file synced and none was unreadable."""
        return not self.failed and not self.unreadable

    def count(self, outcome: FileOutcome) -> int:
        return sum(1 for result in self.results if result.outcome == outcome)
