"""Reconciliation of local template files against the remote collection.

The reconciler decides, for each template file, whether to create, modify,
pull or leave it alone, and applies that decision. Files are independent of
each other, so their operations run on a thread pool and are joined before
reporting. Templates that exist remotely without a local file are never
touched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

from transloadify.template_client.errors import SyncError
from transloadify.template_client.models import RemoteTemplateClient
from transloadify.template_files.models import DEFAULT_RESERVED_KEY, TemplateFile
from transloadify.template_files.template_file import TemplateFileHandler

from .errors import DuplicateReferenceError, OrphanedReferenceError
from .models import FileOutcome, FileResult, PlannedOperation
from .remote_index import RemoteIndex

if TYPE_CHECKING:
    from transloadify.cli.output import OutputSink

logger = logging.getLogger(__name__)

# Maximum parallel per-file operations
MAX_WORKERS = 10


class Reconciler:
    """Brings remote templates in line with local template files.

    For every file:
    - no embedded id: create the template, then write the new id into the file
    - id found remotely: modify content and/or name where they differ
    - id found remotely, file holds nothing but the id: pull remote content
    - id missing remotely: skip with OrphanedReferenceError

    The remote index is loaded before any mutation, so a listing failure
    aborts the run with nothing changed. After that, one file's failure
    never stops the others; failures are collected into the results.

    Example:
        >>> index = RemoteIndex(client)
        >>> reconciler = Reconciler(client, index, output=output)
        >>> results = reconciler.reconcile(list(DirectoryWalker(["templates"])))
    """

    def __init__(
        self,
        client: RemoteTemplateClient,
        index: RemoteIndex,
        reserved_key: str = DEFAULT_RESERVED_KEY,
        max_workers: int = MAX_WORKERS,
        output: Optional["OutputSink"] = None,
    ):
        """Initialize the reconciler.

        Args:
            client: Template client used for mutations
            index: Remote snapshot (loaded on first use if needed)
            reserved_key: Top-level key holding the remote id in files
            max_workers: Maximum concurrent per-file operations
            output: Sink receiving per-file outcomes (optional)
        """
        self.client = client
        self.index = index
        self.reserved_key = reserved_key
        self.max_workers = max_workers
        self.output = output

    def plan(
        self,
        template_files: Sequence[TemplateFile],
        renames: Optional[Mapping[Path, str]] = None,
    ) -> List[PlannedOperation]:
        """Compute the operations a reconcile would perform, without performing them.

        Args:
            template_files: Files to reconcile, in walk order
            renames: Optional explicit names keyed by file path

        Returns:
            Planned operations in walk order (files needing nothing are omitted)

        Raises:
            RemoteUnavailableError: If the remote index cannot be built
        """
        self.index.load()
        renames = renames or {}

        planned = []
        duplicates = self._claim_ids(template_files)
        for template_file in template_files:
            if id(template_file) in duplicates:
                planned.append(PlannedOperation(
                    action="skip",
                    path=template_file.path,
                    template_id=template_file.template_id,
                    reason=str(duplicates[id(template_file)]),
                ))
                continue
            operation = self._decide(template_file, renames.get(template_file.path))
            if operation is not None:
                planned.append(operation)
        return planned

    def reconcile(
        self,
        template_files: Sequence[TemplateFile],
        renames: Optional[Mapping[Path, str]] = None,
    ) -> List[FileResult]:
        """Reconcile all files and report each outcome.

        Args:
            template_files: Files to reconcile, in walk order
            renames: Optional explicit names keyed by file path

        Returns:
            One FileResult per file, in the same order as ``template_files``

        Raises:
            RemoteUnavailableError: If the remote index cannot be built
                (raised before any mutation)
        """
        self.index.load()
        renames = renames or {}

        logger.info(f"Reconciling {len(template_files)} template file(s)")

        duplicates = self._claim_ids(template_files)
        results: List[Optional[FileResult]] = [None] * len(template_files)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {}
            for position, template_file in enumerate(template_files):
                if id(template_file) in duplicates:
                    results[position] = FileResult(
                        path=template_file.path,
                        outcome=FileOutcome.SKIPPED,
                        template_id=template_file.template_id,
                        error=duplicates[id(template_file)],
                    )
                    continue
                future = executor.submit(
                    self._reconcile_one,
                    template_file,
                    renames.get(template_file.path),
                )
                futures[future] = position

            for future, position in futures.items():
                template_file = template_files[position]
                try:
                    results[position] = future.result()
                except Exception as e:
                    logger.exception(f"Unexpected error reconciling {template_file.path}")
                    results[position] = FileResult(
                        path=template_file.path,
                        outcome=FileOutcome.ERRORED,
                        template_id=template_file.template_id,
                        error=e,
                    )

        final_results = [result for result in results if result is not None]
        for result in final_results:
            self._report(result)
        return final_results

    def _claim_ids(
        self,
        template_files: Sequence[TemplateFile],
    ) -> Dict[int, DuplicateReferenceError]:
        """Give each id to the first file that references it.

        Returns:
            Mapping of object id of each losing file to its error
        """
        claimed: Dict[str, Path] = {}
        duplicates: Dict[int, DuplicateReferenceError] = {}
        for template_file in template_files:
            template_id = template_file.template_id
            if template_id is None:
                continue
            if template_id in claimed:
                duplicates[id(template_file)] = DuplicateReferenceError(
                    str(template_file.path), template_id, str(claimed[template_id])
                )
            else:
                claimed[template_id] = template_file.path
        return duplicates

    def _decide(
        self,
        template_file: TemplateFile,
        desired_name: Optional[str] = None,
    ) -> Optional[PlannedOperation]:
        """Decide what one file needs. None means nothing to do."""
        template_id = template_file.template_id

        if template_id is None:
            return PlannedOperation(action="create", path=template_file.path)

        if template_id not in self.index:
            return PlannedOperation(
                action="skip",
                path=template_file.path,
                template_id=template_id,
                reason=str(OrphanedReferenceError(str(template_file.path), template_id)),
            )

        remote = self.index[template_id]

        if template_file.is_bare_reference:
            if isinstance(remote.content, dict) and remote.content:
                return PlannedOperation(action="pull", path=template_file.path, template_id=template_id)
            return None

        fields = []
        if remote.content != template_file.body:
            fields.append("content")
        if desired_name is not None and desired_name != remote.name:
            fields.append("name")
        if fields:
            return PlannedOperation(
                action="modify",
                path=template_file.path,
                template_id=template_id,
                fields=fields,
            )
        return None

    def _reconcile_one(
        self,
        template_file: TemplateFile,
        desired_name: Optional[str] = None,
    ) -> FileResult:
        """Apply the decision for a single file.

        Remote and filesystem failures are returned as ERRORED results
        rather than raised.
        """
        operation = self._decide(template_file, desired_name)
        path = template_file.path
        template_id = template_file.template_id

        if operation is None:
            return FileResult(path=path, outcome=FileOutcome.UNCHANGED, template_id=template_id)

        if operation.action == "skip":
            return FileResult(
                path=path,
                outcome=FileOutcome.SKIPPED,
                template_id=template_id,
                error=OrphanedReferenceError(str(path), template_id),
            )

        try:
            if operation.action == "create":
                return self._create(template_file)
            if operation.action == "pull":
                return self._pull(template_file)
            return self._modify(template_file, operation, desired_name)
        except SyncError as e:
            logger.error(f"Failed to {operation.action} {path}: {e}")
            return FileResult(
                path=path,
                outcome=FileOutcome.ERRORED,
                template_id=template_id,
                error=e,
            )

    def _create(self, template_file: TemplateFile) -> FileResult:
        response = self.client.create_template(template_file.name, template_file.body)
        new_id = str(response['id'])
        logger.info(f"Created template {new_id} from {template_file.path}")

        try:
            TemplateFileHandler.write_template(template_file, new_id, reserved_key=self.reserved_key)
        except SyncError as e:
            logger.error(f"Created template {new_id} but could not write its id into {template_file.path}: {e}")
            return FileResult(
                path=template_file.path,
                outcome=FileOutcome.ERRORED,
                template_id=new_id,
                error=e,
            )

        return FileResult(path=template_file.path, outcome=FileOutcome.CREATED, template_id=new_id)

    def _pull(self, template_file: TemplateFile) -> FileResult:
        remote = self.index[template_file.template_id]
        TemplateFileHandler.write_template(
            template_file,
            remote.template_id,
            reserved_key=self.reserved_key,
            body=remote.content,
        )
        logger.info(f"Pulled template {remote.template_id} into {template_file.path}")
        return FileResult(path=template_file.path, outcome=FileOutcome.PULLED, template_id=remote.template_id)

    def _modify(
        self,
        template_file: TemplateFile,
        operation: PlannedOperation,
        desired_name: Optional[str],
    ) -> FileResult:
        self.client.modify_template(
            template_file.template_id,
            name=desired_name if "name" in operation.fields else None,
            content=template_file.body if "content" in operation.fields else None,
        )
        logger.info(
            f"Modified template {template_file.template_id} "
            f"({', '.join(operation.fields)}) from {template_file.path}"
        )
        return FileResult(
            path=template_file.path,
            outcome=FileOutcome.UPDATED,
            template_id=template_file.template_id,
        )

    def _report(self, result: FileResult) -> None:
        """Send one file's outcome to the output sink."""
        if self.output is None:
            return
        label = f"{result.outcome.value}: {result.path}"
        if result.template_id:
            label += f" ({result.template_id})"
        self.output.debug(label)
        if result.error is not None:
            self.output.error(str(result.error))
