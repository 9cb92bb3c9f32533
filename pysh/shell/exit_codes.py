"""Conventional exit statuses."""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    MISUSE = 2
    CANNOT_EXECUTE = 126
    NOT_FOUND = 127
    INTERRUPTED = 130  # 128 + SIGINT
