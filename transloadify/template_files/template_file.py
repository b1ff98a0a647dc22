"""Reading and writing template files.

A template file is a JSON object. The reserved top-level key (by default
``transloadit_template_id``) holds the remote id; every other top-level key
is the template content. Write-back goes through a temporary file in the same
directory followed by ``os.replace`` so an interrupted run never leaves a
half-written template in place of the original.
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import FilesystemError, MalformedTemplateFileError
from .models import DEFAULT_RESERVED_KEY, TemplateFile

logger = logging.getLogger(__name__)

# Maximum file size to prevent memory exhaustion
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB in bytes


class TemplateFileHandler:
    """Parses template files and writes them back with an embedded id.

    Template file format:
        {
          "transloadit_template_id": "abc123",   # optional, remote id
          "steps": { ... }                       # content
        }

    When the id is written back, it is placed first and all content keys
    keep their values and order.
    """

    @classmethod
    def parse(
        cls,
        path: Union[str, Path],
        text: str,
        reserved_key: str = DEFAULT_RESERVED_KEY,
        depth: int = 0,
    ) -> TemplateFile:
        """Parse template file text into a TemplateFile.

        Args:
            path: Path the text was read from (for errors and naming)
            text: Raw file content
            reserved_key: Top-level key holding the remote id
            depth: Directory depth below the walk root

        Returns:
            TemplateFile with id and body split apart

        Raises:
            MalformedTemplateFileError: If text is not a JSON object or the id is not a string
        """
        path = Path(path)
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedTemplateFileError(str(path), f"invalid JSON ({e})")

        if not isinstance(data, dict):
            raise MalformedTemplateFileError(
                str(path),
                f"expected a JSON object, got {type(data).__name__}"
            )

        template_id = data.pop(reserved_key, None)
        if template_id is not None and not isinstance(template_id, str):
            raise MalformedTemplateFileError(
                str(path),
                f"'{reserved_key}' must be a string, got {type(template_id).__name__}"
            )

        return TemplateFile(
            path=path,
            template_id=template_id or None,
            body=data,
            depth=depth,
        )

    @classmethod
    def read(
        cls,
        path: Union[str, Path],
        reserved_key: str = DEFAULT_RESERVED_KEY,
        depth: int = 0,
    ) -> TemplateFile:
        """Read and parse a template file from disk.

        Args:
            path: File to read
            reserved_key: Top-level key holding the remote id
            depth: Directory depth below the walk root

        Returns:
            Parsed TemplateFile

        Raises:
            MalformedTemplateFileError: If the file is unreadable as a template
            FilesystemError: If the file cannot be read
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            raise FilesystemError(str(path), 'read', 'File not found')
        except OSError as e:
            raise FilesystemError(str(path), 'stat', str(e))

        if size > MAX_FILE_SIZE:
            raise MalformedTemplateFileError(
                str(path),
                f"file size ({size / (1024 * 1024):.2f} MB) exceeds maximum allowed size "
                f"({MAX_FILE_SIZE // (1024 * 1024)} MB)"
            )

        try:
            text = path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            raise MalformedTemplateFileError(str(path), f"not UTF-8 text ({e})")
        except PermissionError:
            raise FilesystemError(str(path), 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(str(path), 'read', str(e))

        return cls.parse(path, text, reserved_key=reserved_key, depth=depth)

    @classmethod
    def read_content(cls, path: Union[str, Path], reserved_key: str = DEFAULT_RESERVED_KEY) -> Optional[Dict[str, Any]]:
        """Read a file's template content for one-shot commands.

        An empty (or whitespace-only) file means "no content".

        Args:
            path: File to read
            reserved_key: Top-level key to strip from the content

        Returns:
            Content dict, or None for an empty file
        """
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except FileNotFoundError:
            raise FilesystemError(str(path), 'read', 'File not found')
        except OSError as e:
            raise FilesystemError(str(path), 'read', str(e))

        if not text.strip():
            return None
        return cls.parse(path, text, reserved_key=reserved_key).body

    @classmethod
    def render(
        cls,
        body: Dict[str, Any],
        template_id: Optional[str] = None,
        reserved_key: str = DEFAULT_RESERVED_KEY,
    ) -> str:
        """Render file text with the id (if any) placed first.

        Args:
            body: Template content
            template_id: Remote id to embed
            reserved_key: Top-level key holding the remote id

        Returns:
            JSON text with 2-space indentation and a trailing newline
        """
        data: Dict[str, Any] = {}
        if template_id is not None:
            data[reserved_key] = template_id
        for key, value in body.items():
            if key != reserved_key:
                data[key] = value
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def write_atomic(cls, path: Union[str, Path], text: str) -> None:
        """Replace a file's content atomically.

        The text is written to a temporary file next to the target, flushed
        to disk and moved over the target with ``os.replace``. The temporary
        file is removed on every failure path.

        Args:
            path: File to replace
            text: New content

        Raises:
            FilesystemError: If the write or replace fails
        """
        path = Path(path)
        temp_path: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(
                mode='w',
                encoding='utf-8',
                dir=str(path.parent),
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                temp_path = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())

            if path.exists():
                shutil.copymode(str(path), temp_path)
            os.replace(temp_path, str(path))
            temp_path = None
            logger.debug(f"Wrote {path}")
        except OSError as e:
            raise FilesystemError(str(path), 'write', f"Atomic write failed: {e}")
        finally:
            if temp_path is not None:
                try:
                    os.remove(temp_path)
                except OSError as e:
                    logger.warning(f"Failed to remove temp file {temp_path}: {e}")

    @classmethod
    def write_template(
        cls,
        template_file: TemplateFile,
        template_id: str,
        reserved_key: str = DEFAULT_RESERVED_KEY,
        body: Optional[Dict[str, Any]] = None,
    ) -> TemplateFile:
        """Write a template file back with its id embedded.

        Args:
            template_file: File to rewrite
            template_id: Remote id to embed
            reserved_key: Top-level key holding the remote id
            body: Replacement content (defaults to the file's current body)

        Returns:
            A new TemplateFile describing what is now on disk
        """
        new_body = template_file.body if body is None else body
        cls.write_atomic(
            template_file.path,
            cls.render(new_body, template_id=template_id, reserved_key=reserved_key),
        )
        return TemplateFile(
            path=template_file.path,
            template_id=template_id,
            body=dict(new_body),
            depth=template_file.depth,
        )
