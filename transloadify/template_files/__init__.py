"""Local template files: parsing, write-back, directory walking and config.

A template file is a JSON object whose reserved top-level key holds the
remote template id; the remaining keys are the template content.
"""

from .models import DEFAULT_RESERVED_KEY, TemplateFile, SyncConfig
from .errors import (
    TemplateFileError,
    FilesystemError,
    ConfigError,
    MalformedTemplateFileError,
    CycleDetectedError,
)
from .config_loader import ConfigLoader
from .directory_walker import DirectoryWalker
from .template_file import TemplateFileHandler

__all__ = [
    'DEFAULT_RESERVED_KEY',
    'TemplateFile',
    'SyncConfig',
    'TemplateFileError',
    'FilesystemError',
    'ConfigError',
    'MalformedTemplateFileError',
    'CycleDetectedError',
    'ConfigLoader',
    'DirectoryWalker',
    'TemplateFileHandler',
]
