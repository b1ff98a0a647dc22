"""Template commands.

Each command takes an OutputSink and a RemoteTemplateClient, does its work,
and reports through the sink. Commands that succeed silently (modify,
delete, sync) emit nothing unless something goes wrong, so an empty output
means success. Every failure is emitted as an ``error`` entry before the
exception is raised to the caller.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from transloadify.sync.models import SyncReport
from transloadify.sync.reconciler import Reconciler
from transloadify.sync.remote_index import RemoteIndex
from transloadify.template_client.errors import SyncError
from transloadify.template_client.models import RemoteTemplateClient
from transloadify.template_files.directory_walker import DirectoryWalker
from transloadify.template_files.errors import TemplateFileError
from transloadify.template_files.models import DEFAULT_RESERVED_KEY, SyncConfig
from transloadify.template_files.template_file import TemplateFileHandler

from .errors import CommandFailedError
from .output import OutputSink

logger = logging.getLogger(__name__)

# Maximum parallel requests for multi-id commands
MAX_WORKERS = 10

PathLike = Union[str, Path]


def create(
    output: OutputSink,
    client: RemoteTemplateClient,
    name: str,
    file: PathLike,
    reserved_key: str = DEFAULT_RESERVED_KEY,
) -> Dict[str, Any]:
    """Create one remote template from a local file.

    The new id is written back into the file so a later sync updates the
    same template instead of creating another one. The id is printed
    before the write-back, so it is reported even when the write fails.

    Args:
        output: Output sink
        client: Template client
        name: Template name
        file: JSON file holding the template content (an empty file means ``{}``)
        reserved_key: Top-level key holding the remote id

    Returns:
        The server response

    Raises:
        TemplateFileError: If the file cannot be read or written
        TemplateClientError: If the service rejects the request
    """
    try:
        content = TemplateFileHandler.read_content(file, reserved_key=reserved_key)
        if content is None:
            content = {}

        response = client.create_template(name, content)
    except SyncError as e:
        output.error(str(e))
        raise

    template_id = str(response['id'])
    logger.info(f"Created template {template_id} ({name}) from {file}")

    # Printed before write-back: the template exists remotely from here on
    output.print(template_id, json=response)

    try:
        TemplateFileHandler.write_atomic(
            file,
            TemplateFileHandler.render(content, template_id=template_id, reserved_key=reserved_key),
        )
    except SyncError as e:
        logger.error(f"Created template {template_id} but could not write its id into {file}: {e}")
        output.error(f"Created template {template_id} but could not write its id into {file}: {e}")
        raise

    return response


def get(
    output: OutputSink,
    client: RemoteTemplateClient,
    templates: Sequence[str],
    max_workers: int = MAX_WORKERS,
) -> None:
    """Fetch templates and print each one, in the order requested.

    Requests run concurrently; output follows ``templates`` order no matter
    which response arrives first.

    Args:
        output: Output sink
        client: Template client
        templates: Template ids
        max_workers: Maximum concurrent requests

    Raises:
        CommandFailedError: If any id could not be fetched (after all were attempted)
    """
    failures: List[Tuple[str, Exception]] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(client.get_template, template_id) for template_id in templates]

        for template_id, future in zip(templates, futures):
            try:
                template = future.result()
            except SyncError as e:
                logger.error(f"Failed to get template {template_id}: {e}")
                output.error(str(e))
                failures.append((template_id, e))
                continue

            payload = template.to_dict()
            output.print(json.dumps(payload, indent=2), json=payload)

    if failures:
        raise CommandFailedError("get", failures)


def modify(
    output: OutputSink,
    client: RemoteTemplateClient,
    template: str,
    name: Optional[str] = None,
    file: Optional[PathLike] = None,
    reserved_key: str = DEFAULT_RESERVED_KEY,
) -> None:
    """Rename a template and/or replace its content.

    An empty file leaves the content alone, so ``name`` plus an empty file
    is a pure rename. Nothing is printed on success.

    Args:
        output: Output sink
        client: Template client
        template: Template id
        name: New name (None keeps the current name)
        file: JSON file with the new content (None or empty keeps the current content)
        reserved_key: Top-level key to strip from the file content

    Raises:
        TemplateFileError: If the file cannot be read
        TemplateClientError: If the template is missing or the service rejects the change
    """
    try:
        content = None
        if file is not None:
            content = TemplateFileHandler.read_content(file, reserved_key=reserved_key)

        if name is None and content is None:
            logger.info(f"Nothing to modify for template {template}")
            return

        client.modify_template(template, name=name, content=content)
    except SyncError as e:
        output.error(str(e))
        raise

    logger.info(f"Modified template {template}")


def delete(
    output: OutputSink,
    client: RemoteTemplateClient,
    templates: Sequence[str],
    max_workers: int = MAX_WORKERS,
) -> None:
    """Delete templates. Nothing is printed on success.

    Every id is attempted even if some fail.

    Args:
        output: Output sink
        client: Template client
        templates: Template ids
        max_workers: Maximum concurrent requests

    Raises:
        CommandFailedError: If any deletion failed
    """
    failures: List[Tuple[str, Exception]] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(client.delete_template, template_id) for template_id in templates]

        for template_id, future in zip(templates, futures):
            try:
                future.result()
                logger.info(f"Deleted template {template_id}")
            except SyncError as e:
                logger.error(f"Failed to delete template {template_id}: {e}")
                output.error(str(e))
                failures.append((template_id, e))

    if failures:
        raise CommandFailedError("delete", failures)


def list_templates(
    output: OutputSink,
    client: RemoteTemplateClient,
    page_size: int = 50,
) -> None:
    """Print every remote template as ``<id> <name>``.

    Raises:
        RemoteUnavailableError: If any listing page fails
    """
    try:
        index = RemoteIndex.build(client, page_size=page_size)
    except SyncError as e:
        output.error(str(e))
        raise

    for template in index.values():
        output.print(f"{template.template_id} {template.name}", json=template.to_dict())


def sync(
    output: OutputSink,
    client: RemoteTemplateClient,
    files: Sequence[PathLike],
    recursive: bool = False,
    config: Optional[SyncConfig] = None,
    dry_run: bool = False,
) -> SyncReport:
    """Make the given template files exist and be current remotely.

    Remote templates without a local file are left alone. Nothing is
    printed for a fully successful run; skipped and failed files are
    reported as errors. With ``dry_run`` the planned operations are
    emitted as ``info`` entries and nothing is changed.

    Args:
        output: Output sink
        client: Template client
        files: Root files and directories
        recursive: Descend into subdirectories of directory roots
        config: Sync options (defaults if None)
        dry_run: Plan only, do not mutate anything

    Returns:
        SyncReport with per-file results

    Raises:
        CycleDetectedError: If a recursive walk loops (before any remote call)
        RemoteUnavailableError: If the remote index cannot be built (before any mutation)
    """
    config = config or SyncConfig()

    walker = DirectoryWalker(
        files,
        recursive=recursive,
        reserved_key=config.reserved_key,
        file_extension=config.file_extension,
    )
    try:
        template_files = list(walker)
    except TemplateFileError as e:
        output.error(str(e))
        raise

    report = SyncReport(unreadable=list(walker.skipped))
    if report.unreadable:
        output.warn(f"Skipped {len(report.unreadable)} unreadable file(s)")
        for error in report.unreadable:
            output.error(str(error))

    index = RemoteIndex(client, page_size=config.page_size)
    reconciler = Reconciler(
        client,
        index,
        reserved_key=config.reserved_key,
        max_workers=config.max_workers,
        output=output,
    )

    try:
        if dry_run:
            report.planned = reconciler.plan(template_files)
            for operation in report.planned:
                output.info(operation.describe())
            return report

        report.results = reconciler.reconcile(template_files)
    except SyncError as e:
        output.error(str(e))
        raise

    logger.info(
        f"Sync finished: {len(report.succeeded)} ok, {len(report.failed)} failed, "
        f"{len(report.unreadable)} unreadable, {report.mutation_count} mutation(s)"
    )
    return report
