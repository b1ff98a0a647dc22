"""Directory traversal producing template file candidates.

The walker turns a list of roots (files or directories) into TemplateFile
objects. Directories are read breadth-first with entries sorted by name, so
files come out ordered by depth and then name and repeated walks of an
unchanged tree yield the same sequence.
"""

import logging
import os
from collections import deque
from pathlib import Path
from typing import Iterable, Iterator, List, Set, Union

from .errors import CycleDetectedError, FilesystemError, TemplateFileError
from .models import DEFAULT_RESERVED_KEY, TemplateFile
from .template_file import TemplateFileHandler

logger = logging.getLogger(__name__)


class DirectoryWalker:
    """Enumerates template files below one or more roots.

    A file root is yielded as-is whatever its extension. For a directory
    root only files ending in ``file_extension`` are considered: direct
    children when ``recursive`` is False, the whole subtree otherwise.

    Files that cannot be parsed are not fatal. They are recorded in
    ``skipped`` and the walk continues. A symbolic link loop (a directory
    reached again below itself) during a recursive walk raises
    CycleDetectedError.

    The walker is restartable: each iteration starts a fresh walk and
    clears ``skipped``.

    Example:
        >>> walker = DirectoryWalker(["templates"], recursive=True)
        >>> files = list(walker)
        >>> for error in walker.skipped:
        ...     print(error)
    """

    def __init__(
        self,
        roots: Iterable[Union[str, Path]],
        recursive: bool = False,
        reserved_key: str = DEFAULT_RESERVED_KEY,
        file_extension: str = ".json",
    ):
        """Initialize the walker.

        Args:
            roots: Files and/or directories to walk, in order
            recursive: Descend into subdirectories of directory roots
            reserved_key: Top-level key holding the remote id
            file_extension: Suffix identifying template files in directories
        """
        self.roots = [Path(root) for root in roots]
        self.recursive = recursive
        self.reserved_key = reserved_key
        self.file_extension = file_extension
        self.skipped: List[TemplateFileError] = []

    def __iter__(self) -> Iterator[TemplateFile]:
        return self.walk()

    def walk(self) -> Iterator[TemplateFile]:
        """Yield parsed template files for all roots.

        Yields:
            TemplateFile for every readable candidate

        Raises:
            CycleDetectedError: If a recursive walk reaches a directory below itself
        """
        self.skipped = []
        seen_files: Set[str] = set()

        for root, path, depth in self._iter_candidates():
            real_path = os.path.realpath(path)
            if real_path in seen_files:
                logger.debug(f"Already visited {path} - skipping duplicate")
                continue
            seen_files.add(real_path)

            try:
                yield TemplateFileHandler.read(path, reserved_key=self.reserved_key, depth=depth)
            except TemplateFileError as e:
                logger.warning(f"Failed to read {path}: {e} - skipping")
                self.skipped.append(e)

    def _iter_candidates(self) -> Iterator[tuple]:
        """Yield (root, path, depth) for every candidate file."""
        for root in self.roots:
            if root.is_dir():
                yield from self._iter_directory(root)
            elif root.exists():
                yield root, root, 0
            else:
                logger.warning(f"Root {root} does not exist - skipping")
                self.skipped.append(FilesystemError(str(root), 'read', 'Path does not exist'))

    def _iter_directory(self, root: Path) -> Iterator[tuple]:
        """Breadth-first walk of one directory root.

        Each queued directory carries the canonical paths of its ancestors.
        Reaching a directory that is its own ancestor is a link loop; the same
        directory reached along two unrelated paths is walked twice and the
        duplicate files are dropped by ``walk``.
        """
        queue = deque([(root, 0, frozenset())])

        while queue:
            directory, depth, ancestors = queue.popleft()

            canonical = os.path.realpath(directory)
            if canonical in ancestors:
                raise CycleDetectedError(str(directory))
            lineage = ancestors | {canonical}

            try:
                entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
            except PermissionError:
                logger.warning(f"Permission denied reading {directory} - skipping")
                self.skipped.append(FilesystemError(str(directory), 'read', 'Permission denied'))
                continue

            subdirectories = []
            for entry in entries:
                if entry.is_dir():
                    subdirectories.append(entry)
                elif entry.is_file() and entry.name.endswith(self.file_extension):
                    yield root, entry, depth

            if self.recursive:
                for subdirectory in subdirectories:
                    queue.append((subdirectory, depth + 1, lineage))
