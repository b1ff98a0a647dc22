"""Data models for the remote template service.

RemoteTemplateClient is the capability the sync engine consumes. Anything
implementing these five methods can stand in for the HTTP client, which is
how the test suite drives the engine with an in-memory service.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass
class RemoteTemplate:
    """A template as stored by the service.

    Attributes:
        template_id: Opaque server-assigned identifier, immutable once created
        name: Template name (mutable)
        content: Decoded JSON content of the template (mutable)
    """
    template_id: str
    name: str
    content: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the template the way commands print it."""
        return {
            "id": self.template_id,
            "name": self.name,
            "content": self.content,
        }


@dataclass
class TemplatePage:
    """One page of a template listing.

    Attributes:
        items: Templates on this page
        has_more: True if the service reports further pages
    """
    items: List[RemoteTemplate] = field(default_factory=list)
    has_more: bool = False


class RemoteTemplateClient(Protocol):
    """Capability offered by the remote template service."""

    def create_template(self, name: str, content: Any) -> Dict[str, Any]:
        """Create a template and return the server response (contains ``id``)."""
        ...

    def get_template(self, template_id: str) -> RemoteTemplate:
        """Fetch one template. Raises NotFoundError if absent."""
        ...

    def modify_template(
        self,
        template_id: str,
        name: Optional[str] = None,
        content: Any = None,
    ) -> None:
        """Update name and/or content. Fields left as None are untouched."""
        ...

    def delete_template(self, template_id: str) -> None:
        """Delete one template. Raises NotFoundError if absent."""
        ...

    def list_templates(self, page: int = 1, page_size: int = 50) -> TemplatePage:
        """Fetch one page (1-based) of the template listing."""
        ...
