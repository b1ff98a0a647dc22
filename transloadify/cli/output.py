"""Command output sinks.

Commands never print directly: they emit typed entries into an OutputSink.
BufferedOutput keeps entries for inspection (tests, library use), NullOutput
drops them, and ConsoleOutput renders them with the Rich library, filtered
by verbosity.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, List

from rich.console import Console
from rich.markup import escape

from .models import OutputKind

logger = logging.getLogger(__name__)


@dataclass
class OutputEntry:
    """One emitted output entry.

    Attributes:
        type: Entry kind (print, error, warn, info, debug)
        msg: Human readable message
        json: Structured payload, if any (e.g. a server response)
    """
    type: str
    msg: Any
    json: Any = None


class OutputSink:
    """Base class for command output.

    Subclasses implement ``emit``; the convenience methods all route
    through it.
    """

    def emit(self, kind: str, message: Any, json: Any = None) -> None:
        raise NotImplementedError

    def print(self, message: Any, json: Any = None) -> None:
        self.emit(OutputKind.PRINT, message, json)

    def error(self, message: Any, json: Any = None) -> None:
        self.emit(OutputKind.ERROR, message, json)

    def warn(self, message: Any, json: Any = None) -> None:
        self.emit(OutputKind.WARN, message, json)

    def info(self, message: Any, json: Any = None) -> None:
        self.emit(OutputKind.INFO, message, json)

    def debug(self, message: Any, json: Any = None) -> None:
        self.emit(OutputKind.DEBUG, message, json)


class NullOutput(OutputSink):
    """Discards all output."""

    def emit(self, kind: str, message: Any, json: Any = None) -> None:
        pass


class BufferedOutput(OutputSink):
    """Accumulates output entries in emission order.

    Example:
        >>> output = BufferedOutput()
        >>> output.print("abc123", json={"id": "abc123"})
        >>> output.get()[0].msg
        'abc123'
    """

    def __init__(self):
        self._entries: List[OutputEntry] = []
        self._lock = threading.Lock()

    def emit(self, kind: str, message: Any, json: Any = None) -> None:
        with self._lock:
            self._entries.append(OutputEntry(type=str(kind), msg=message, json=json))

    def get(self, debug: bool = False) -> List[OutputEntry]:
        """Return emitted entries.

        Args:
            debug: Include ``debug`` entries (omitted by default)

        Returns:
            Copy of the entries in emission order
        """
        with self._lock:
            return [
                entry for entry in self._entries
                if debug or entry.type != OutputKind.DEBUG
            ]


class ConsoleOutput(OutputSink):
    """Renders output to the terminal using Rich.

    ``print`` entries go to stdout; everything else goes to stderr so
    that command results can be piped. Verbosity filters the chatty kinds:
    0 shows print/error/warn, 1 adds info, 2 adds debug.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console for results
        err_console: Rich Console for diagnostics
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize console output.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(no_color=no_color, highlight=False, soft_wrap=True)
        self.err_console = Console(stderr=True, no_color=no_color, highlight=False, soft_wrap=True)

    def emit(self, kind: str, message: Any, json: Any = None) -> None:
        if kind == OutputKind.PRINT:
            self.console.print(str(message), markup=False)
        elif kind == OutputKind.ERROR:
            self.err_console.print(f"[red]✗[/red] {escape(str(message))}")
        elif kind == OutputKind.WARN:
            self.err_console.print(f"[yellow]⚠[/yellow] {escape(str(message))}")
        elif kind == OutputKind.INFO:
            if self.verbosity >= 1:
                self.err_console.print(message, markup=False)
        elif kind == OutputKind.DEBUG:
            if self.verbosity >= 2:
                self.err_console.print(f"[dim]{escape(str(message))}[/dim]")
        else:
            logger.debug(f"Unknown output kind {kind!r}: {message}")

