"""Command-line interface for managing Transloadit templates.

This package provides the ``transloadify`` CLI: one-shot template commands
(create, get, modify, delete, list) and the directory sync command, all
reporting through an OutputSink.
"""

from .errors import CLIError, CommandFailedError
from .models import ExitCode, OutputKind
from .output import BufferedOutput, ConsoleOutput, NullOutput, OutputEntry, OutputSink

__all__ = [
    'CLIError',
    'CommandFailedError',
    'ExitCode',
    'OutputKind',
    'BufferedOutput',
    'ConsoleOutput',
    'NullOutput',
    'OutputEntry',
    'OutputSink',
]
