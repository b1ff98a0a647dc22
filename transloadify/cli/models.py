"""Data models for CLI operations."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (config issues, unreadable input)
    - PARTIAL_FAILURE (2): Some files or ids failed, the rest succeeded
    - AUTH_ERROR (3): Authentication or authorization failure
    - NETWORK_ERROR (4): Network connectivity or API availability issues

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    PARTIAL_FAILURE = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


class OutputKind:
    """Kinds of output entries a command can emit."""
    PRINT = "print"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"

    ALL = (PRINT, ERROR, WARN, INFO, DEBUG)
