"""Data models for local template files and sync options."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_RESERVED_KEY = "transloadit_template_id"


@dataclass
class TemplateFile:
    """A local JSON file standing for one remote template.

    Attributes:
        path: Location of the file on disk
        template_id: Remote id embedded under the reserved key (None if not yet created)
        body: The remaining top-level JSON content (the template definition)
        depth: Directory depth below the walk root (0 for files at the root)
    """
    path: Path
    template_id: Optional[str]
    body: Dict[str, Any] = field(default_factory=dict)
    depth: int = 0

    @property
    def name(self) -> str:
        """Template name derived from the file's base name without extension."""
        return self.path.stem

    @property
    def is_bare_reference(self) -> bool:
        """True if the file holds an id and nothing else."""
        return self.template_id is not None and not self.body


@dataclass
class SyncConfig:
    """Options controlling a sync run.

    Attributes:
        reserved_key: Top-level key that holds the remote template id
        file_extension: Suffix identifying template files in directories
        max_workers: Maximum concurrent per-file operations
        page_size: Page size used while building the remote index
    """
    reserved_key: str = DEFAULT_RESERVED_KEY
    file_extension: str = ".json"
    max_workers: int = 10
    page_size: int = 50
