"""Process exit codes for the uniplay CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    FETCH_ERROR = 3
    EXECUTOR_ERROR = 4
