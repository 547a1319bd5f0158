"""Interface for resolving file-backed video sources."""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class MediaStore(ABC):
    """
    Storage collaborator for ``file`` sources.

    Single adapter per storage type (local filesystem, mounted volume, etc).
    Implementations must answer reachability checks without blocking
    indefinitely.
    """

    @abstractmethod
    def exists(self, ref: str) -> bool:
        """
        Check if media reference is reachable.

        Args:
            ref: Media reference to check.

        Returns:
            True if media exists, False otherwise.

        Raises:
            AdapterError: If the storage itself cannot be queried.
        """
        pass

    @abstractmethod
    def get_local_file_path(self, ref: str) -> Path:
        """
        Get local file path for media reference.

        Called by uploaders that need a local file. The media store
        validates that the reference exists and returns its local path.

        Args:
            ref: Media reference to resolve.

        Returns:
            Absolute Path to local file.

        Raises:
            AdapterError: If reference is invalid, media doesn't exist, or can't be accessed.
        """
        pass
