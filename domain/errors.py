"""Error taxonomy for the task lifecycle engine."""
from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes recorded in results and failure reasons."""
    NOT_FOUND = "NotFound"
    INVALID_STATE = "InvalidState"
    MISSING_CREDENTIALS = "MissingCredentials"
    CONFIGURATION_ERROR = "ConfigurationError"
    AUTH_REFRESH_ERROR = "AuthRefreshError"
    SOURCE_UNAVAILABLE = "SourceUnavailable"
    UPLOAD_ERROR = "UploadError"
    INTERNAL_ERROR = "InternalError"


class AutopilotError(Exception):
    """
    Base exception for failures inside a single task's pipeline.

    The executor catches these at its boundary and records them on the
    task; they never escape a batch run.
    """

    code = ErrorCode.INTERNAL_ERROR
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def describe(self) -> str:
        """Human-readable reason suitable for ``failure_reason``."""
        return f"{self.code.value}: {self.message}"

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class NotFoundError(AutopilotError):
    code = ErrorCode.NOT_FOUND


class InvalidStateError(AutopilotError):
    """Task is not in a status that allows the requested transition."""
    code = ErrorCode.INVALID_STATE


class MissingCredentialsError(AutopilotError):
    code = ErrorCode.MISSING_CREDENTIALS


class ConfigurationError(AutopilotError):
    """OAuth client configuration rejected by the provider."""
    code = ErrorCode.CONFIGURATION_ERROR


class AuthRefreshError(AutopilotError):
    """Transient failure while redeeming a refresh token."""
    code = ErrorCode.AUTH_REFRESH_ERROR
    retryable = True


class SourceUnavailableError(AutopilotError):
    code = ErrorCode.SOURCE_UNAVAILABLE


class UploadError(AutopilotError):
    """Upload rejected or interrupted; carries the provider classification."""
    code = ErrorCode.UPLOAD_ERROR

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable

    def describe(self) -> str:
        kind = "retryable" if self.retryable else "permanent"
        return f"{self.code.value} ({kind}): {self.message}"


class InternalError(AutopilotError):
    """Unexpected fault, converted so it cannot crash a batch."""
    code = ErrorCode.INTERNAL_ERROR


class TaskValidationError(ValueError):
    """Raised when a task record violates its invariants."""
    pass
