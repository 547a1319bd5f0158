"""Structured error type for storage adapters."""
from dataclasses import dataclass
from typing import Any, Optional

FILE_NOT_FOUND = "FILE_NOT_FOUND"
NOT_A_FILE = "NOT_A_FILE"
PATH_RESOLUTION_FAILED = "PATH_RESOLUTION_FAILED"


@dataclass
class AdapterError(Exception):
    """
    Error raised by media store adapters.

    The source validator turns any AdapterError into SourceUnavailable;
    the code and details only end up in logs and failure reasons.
    """
    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} (details: {self.details})"
        return f"[{self.code}] {self.message}"
