"""Pre-upload validation of task sources."""
from __future__ import annotations

import logging
from urllib.parse import urlparse

from domain.errors import SourceUnavailableError
from domain.models import SourceType, UploadSource, UploadTask
from ports.adapter_error import AdapterError
from ports.media_store import MediaStore

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = {"http", "https"}


def is_valid_remote_url(value: str) -> bool:
    """Syntactic check only; the uploader performs the actual fetch."""
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in REMOTE_SCHEMES and bool(parsed.netloc)


class SourceValidator:
    """Checks that a task's source can be handed to the uploader."""

    def __init__(self, media_store: MediaStore):
        self.media_store = media_store

    def validate(self, task: UploadTask) -> UploadSource:
        """
        Validate the task's source.

        Returns:
            UploadSource for the uploader.

        Raises:
            SourceUnavailableError: If the file is unreachable or the URL is malformed.
        """
        value = (task.source_value or "").strip()
        if not value:
            raise SourceUnavailableError("Source is empty")

        if task.source_type == SourceType.FILE:
            try:
                reachable = self.media_store.exists(value)
            except AdapterError as e:
                logger.error(f"Task {task.id}: media store check failed: {e}")
                raise SourceUnavailableError(f"Source file not reachable: {e}") from e
            if not reachable:
                raise SourceUnavailableError(f"Source file not reachable: {value}")
            return UploadSource(SourceType.FILE, value)

        if not is_valid_remote_url(value):
            raise SourceUnavailableError(f"Invalid source URL: {value}")
        return UploadSource(SourceType.REMOTE, value)
