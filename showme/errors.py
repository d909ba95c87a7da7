"""Error model - one tagged error type and an explicit outcome wrapper"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Top-level grouping for every error the backend reports"""

    VALIDATION = "VALIDATION"
    GIT_OPERATION = "GIT_OPERATION"
    HTTP_SERVER = "HTTP_SERVER"


class PathErrorCode:
    NULL_BYTE = "NULL_BYTE"
    RESERVED_DEVICE_NAME = "RESERVED_DEVICE_NAME"
    DIRECTORY_TRAVERSAL = "DIRECTORY_TRAVERSAL"
    OUTSIDE_WORKSPACE = "OUTSIDE_WORKSPACE"
    ABSOLUTE_PATH_DENIED = "ABSOLUTE_PATH_DENIED"
    NOT_ACCESSIBLE = "NOT_ACCESSIBLE"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    MISSING_PATH = "MISSING_PATH"


class GitErrorCode:
    NOT_A_REPOSITORY = "NOT_A_REPOSITORY"
    DIRECTORY_NOT_FOUND = "DIRECTORY_NOT_FOUND"
    ROOT_LOOKUP_FAILED = "ROOT_LOOKUP_FAILED"
    BRANCH_LOOKUP_FAILED = "BRANCH_LOOKUP_FAILED"
    UNSAFE_PATH = "UNSAFE_PATH"
    EMPTY_PATH = "EMPTY_PATH"
    INVALID_TARGET = "INVALID_TARGET"
    AMBIGUOUS_TARGET = "AMBIGUOUS_TARGET"
    TIMEOUT = "TIMEOUT"
    OUTPUT_TOO_LARGE = "OUTPUT_TOO_LARGE"
    DIFF_COMMAND_ERROR = "DIFF_COMMAND_ERROR"


class ServerErrorCode:
    ADDRESS_IN_USE = "ADDRESS_IN_USE"
    SERVER_START_ERROR = "SERVER_START_ERROR"
    SERVER_NOT_STARTED = "SERVER_NOT_STARTED"


class ShowMeError(Exception):
    """Error carrying a category tag, a machine-readable code and optional cause"""

    def __init__(
        self,
        category: ErrorCategory,
        code: str,
        message: str,
        context: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.category = category
        self.code = code
        self.message = message
        self.context = context or {}
        self.cause = cause

    @classmethod
    def validation(cls, code: str, message: str, cause: Optional[BaseException] = None, **context: Any) -> "ShowMeError":
        return cls(ErrorCategory.VALIDATION, code, message, context, cause)

    @classmethod
    def git(cls, code: str, message: str, cause: Optional[BaseException] = None, **context: Any) -> "ShowMeError":
        return cls(ErrorCategory.GIT_OPERATION, code, message, context, cause)

    @classmethod
    def server(cls, code: str, message: str, cause: Optional[BaseException] = None, **context: Any) -> "ShowMeError":
        return cls(ErrorCategory.HTTP_SERVER, code, message, context, cause)

    def to_log_format(self) -> dict[str, Any]:
        """Flatten for structured logging"""
        return {
            "category": self.category.value,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }

    def __repr__(self) -> str:
        return f"ShowMeError({self.category.value}/{self.code}: {self.message})"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success or failure outcome returned across component boundaries"""

    value: Optional[T] = None
    error: Optional[ShowMeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ShowMeError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error"""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
