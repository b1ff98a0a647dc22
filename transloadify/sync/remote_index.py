"""Point-in-time snapshot of the remote template collection.

The index pages through the listing endpoint once and then stays frozen for
the rest of the run. A page failure aborts the build: a partial index could
make live templates look orphaned.
"""

import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator, Optional

from transloadify.template_client.errors import (
    InvalidCredentialsError,
    RemoteUnavailableError,
    TemplateClientError,
)
from transloadify.template_client.models import RemoteTemplate, RemoteTemplateClient

logger = logging.getLogger(__name__)

# Upper bound on listing pages, guards against a service that never stops paging
MAX_PAGES = 10000


class RemoteIndex(Mapping):
    """Read-only mapping of template id to RemoteTemplate.

    The listing is fetched on first access (or an explicit ``load()``) and
    never refreshed afterwards, so every per-file task in a run sees the
    same snapshot. Pages are merged by id: order does not matter and an id
    repeated across pages is stored once.

    Example:
        >>> index = RemoteIndex(client, page_size=50)
        >>> index.load()
        >>> "abc123" in index
        True
    """

    def __init__(self, client: RemoteTemplateClient, page_size: int = 50):
        """Initialize an unloaded index.

        Args:
            client: Template client used for the listing calls
            page_size: Number of templates requested per page
        """
        self._client = client
        self._page_size = page_size
        self._snapshot: Optional[Mapping] = None
        self._lock = threading.Lock()

    @classmethod
    def build(cls, client: RemoteTemplateClient, page_size: int = 50) -> "RemoteIndex":
        """Create an index and load it immediately."""
        index = cls(client, page_size=page_size)
        index.load()
        return index

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def load(self) -> None:
        """Fetch every listing page and freeze the result.

        Calling this on a loaded index does nothing.

        Raises:
            RemoteUnavailableError: If any page request fails
            InvalidCredentialsError: If the service rejects the credentials
        """
        with self._lock:
            if self._snapshot is not None:
                return
            self._snapshot = MappingProxyType(self._fetch_all())

    def _fetch_all(self) -> Dict[str, RemoteTemplate]:
        templates: Dict[str, RemoteTemplate] = {}
        page_number = 1

        while True:
            if page_number > MAX_PAGES:
                raise RemoteUnavailableError(
                    "template listing",
                    f"listing did not end after {MAX_PAGES} pages"
                )

            try:
                page = self._client.list_templates(page=page_number, page_size=self._page_size)
            except InvalidCredentialsError:
                raise
            except TemplateClientError as e:
                logger.error(f"Listing page {page_number} failed: {e}")
                raise RemoteUnavailableError(
                    getattr(e, 'endpoint', 'template listing'),
                    f"listing page {page_number} failed ({e})"
                ) from e

            for template in page.items:
                templates[template.template_id] = template

            logger.debug(
                f"Listing page {page_number}: {len(page.items)} template(s), "
                f"{len(templates)} distinct so far"
            )

            if not page.items or not page.has_more:
                break
            page_number += 1

        logger.info(f"Remote index built: {len(templates)} template(s) in {page_number} page(s)")
        return templates

    def _data(self) -> Mapping:
        if self._snapshot is None:
            self.load()
        return self._snapshot  # type: ignore[return-value]

    def __getitem__(self, template_id: str) -> RemoteTemplate:
        return self._data()[template_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data())

    def __len__(self) -> int:
        return len(self._data())
