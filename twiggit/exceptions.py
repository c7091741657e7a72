"""Custom exceptions for twiggit"""

from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from twiggit.models.resolution import ResolutionSuggestion


class ErrorKind(Enum):
    """Closed set of error categories callers can branch on."""
    VALIDATION = "validation"
    NOT_FOUND = "not-found"
    AMBIGUOUS = "ambiguous"
    CONFLICT = "conflict"
    BACKEND_FAILURE = "backend-failure"
    UNSAFE = "unsafe"


class TwiggitError(Exception):
    """Base exception for all twiggit errors."""

    kind: ErrorKind = ErrorKind.BACKEND_FAILURE

    def __init__(self, message: str, suggestions: Optional[Sequence[str]] = None):
        self.message = message
        self.suggestions: List[str] = list(suggestions or [])
        super().__init__(message)


class ValidationError(TwiggitError):
    """Exception raised when input has the wrong shape."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        field: str,
        value: str,
        message: str,
        suggestions: Optional[Sequence[str]] = None,
    ):
        self.field = field
        self.value = value

        error_msg = f"Invalid {field}"
        if value:
            error_msg += f" '{value}'"
        error_msg += f": {message}"

        super().__init__(error_msg, suggestions)
        self.reason = message


class NotFoundError(TwiggitError):
    """Exception raised when an identifier does not resolve to anything."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        identifier: str,
        scopes: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
        suggestions: Optional[Sequence[str]] = None,
    ):
        self.identifier = identifier
        self.scopes: List[str] = list(scopes or [])

        error_msg = message or f"'{identifier}' not found"
        if self.scopes:
            error_msg += f" (searched: {', '.join(self.scopes)})"

        super().__init__(error_msg, suggestions)


class AmbiguousError(TwiggitError):
    """Exception raised when several targets match an identifier equally well."""

    kind = ErrorKind.AMBIGUOUS

    def __init__(self, identifier: str, candidates: Sequence["ResolutionSuggestion"]):
        self.identifier = identifier
        self.candidates: List["ResolutionSuggestion"] = list(candidates)

        error_msg = f"'{identifier}' is ambiguous: {len(self.candidates)} matches"
        super().__init__(
            error_msg,
            [f"Use '{candidate.text}'" for candidate in self.candidates],
        )


class ConflictError(TwiggitError):
    """Exception raised when the target of an operation already exists."""

    kind = ErrorKind.CONFLICT

    def __init__(self, resource: str, name: str, path: str, message: Optional[str] = None):
        self.resource = resource
        self.name = name
        self.path = path

        error_msg = message or f"{resource} '{name}' already exists at {path}"
        super().__init__(error_msg)


class BackendFailureError(TwiggitError):
    """Exception wrapping an infrastructure failure with the operation and path."""

    kind = ErrorKind.BACKEND_FAILURE

    def __init__(
        self,
        operation: str,
        path: Optional[str] = None,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.path = path
        self.cause = cause

        error_msg = f"Operation '{operation}' failed"
        if path:
            error_msg += f" for '{path}'"
        if message:
            error_msg += f": {message}"
        if cause is not None:
            error_msg += f" ({cause})"

        super().__init__(error_msg)


class GitBackendError(BackendFailureError):
    """Exception raised by a git backend; names the git operation and path."""

    def __init__(
        self,
        operation: str,
        path: Optional[str] = None,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(f"git {operation}", path, message, cause)
        self.git_operation = operation


class UnsafeOperationError(TwiggitError):
    """Exception raised when a safety guard blocks an operation."""

    kind = ErrorKind.UNSAFE

    def __init__(
        self,
        path: str,
        reason: str,
        category: str,
        suggestions: Optional[Sequence[str]] = None,
    ):
        self.path = path
        self.reason = reason
        self.category = category
        super().__init__(f"Refusing to touch '{path}': {reason}", suggestions)
