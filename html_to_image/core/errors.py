"""
Error Taxonomy
==============

The closed set of failure kinds produced by the request-processing core,
with their HTTP status, CLI exit code and retry mappings.
"""

from enum import Enum
from typing import Dict


class ErrorKind(str, Enum):
    """Classified failure kinds."""

    VALIDATION = "validation"
    FONTS_NOT_ALLOWED = "fonts_not_allowed"
    RENDER = "render"
    TASK = "task"


HTTP_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.FONTS_NOT_ALLOWED: 400,
    ErrorKind.RENDER: 500,
    ErrorKind.TASK: 500,
}

# sysexits.h: EX_DATAERR, EX_NOPERM, EX_SOFTWARE
EXIT_CODES: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 65,
    ErrorKind.FONTS_NOT_ALLOWED: 77,
    ErrorKind.RENDER: 70,
    ErrorKind.TASK: 70,
}

RETRYABLE: Dict[ErrorKind, bool] = {
    ErrorKind.VALIDATION: False,
    ErrorKind.FONTS_NOT_ALLOWED: False,
    ErrorKind.RENDER: True,
    ErrorKind.TASK: True,
}

FONTS_NOT_ALLOWED_MESSAGE = "font usage is not allowed on this server"

_PREFIXES: Dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "invalid request: ",
    ErrorKind.RENDER: "rendering failed: ",
    ErrorKind.TASK: "render task failed: ",
}


class ApiError(Exception):
    """
    The only exception type that crosses the render pipeline boundary.

    Every failure is classified into exactly one ``ErrorKind`` at the point
    where it happens. The message is a single human-readable sentence; the
    underlying exception is kept as ``__cause__`` for logging only.
    """

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        self.kind = kind
        self.message = message
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.kind is ErrorKind.FONTS_NOT_ALLOWED:
            return FONTS_NOT_ALLOWED_MESSAGE
        return f"{_PREFIXES[self.kind]}{self.message}"

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value!r}, message={self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ApiError):
            return NotImplemented
        return self.kind is other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.kind]

    @property
    def retryable(self) -> bool:
        return RETRYABLE[self.kind]

    @classmethod
    def validation(cls, message: str) -> "ApiError":
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def fonts_not_allowed(cls) -> "ApiError":
        return cls(ErrorKind.FONTS_NOT_ALLOWED)

    @classmethod
    def render(cls, message: str) -> "ApiError":
        return cls(ErrorKind.RENDER, message)

    @classmethod
    def task(cls, message: str) -> "ApiError":
        return cls(ErrorKind.TASK, message)


def summarize_exception(error: BaseException, limit: int = 200) -> str:
    """
    One-line description of an unclassified exception for client messages.

    Keeps the first non-blank line of the exception text, capped at ``limit``
    characters. Falls back to the exception type name.
    """
    for line in str(error).splitlines():
        line = line.strip()
        if line:
            if len(line) > limit:
                return line[: limit - 3].rstrip() + "..."
            return line
    return type(error).__name__
