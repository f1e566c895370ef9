"""CLI data models."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Every job completed
    - GENERAL_ERROR (1): Configuration or I/O problem before jobs could run
    - JOB_FAILURES (2): At least one job ended in permanent failure

    Example:
        >>> raise typer.Exit(ExitCode.JOB_FAILURES)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    JOB_FAILURES = 2
