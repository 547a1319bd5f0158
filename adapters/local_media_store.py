"""Filesystem-backed media store for ``file`` sources."""
import logging
from pathlib import Path
from typing import Optional, Union

from ports.adapter_error import (
    FILE_NOT_FOUND,
    NOT_A_FILE,
    PATH_RESOLUTION_FAILED,
    AdapterError,
)
from ports.media_store import MediaStore

logger = logging.getLogger(__name__)


class LocalMediaStore(MediaStore):
    """
    MediaStore over a local or mounted directory.

    Relative references are resolved against ``base_path``; absolute ones
    are used as given.
    """

    def __init__(self, base_path: Union[str, Path, None] = None):
        """
        Args:
            base_path: Directory that relative references are resolved
                against. Defaults to the working directory.
        """
        self.base_path = Path(base_path) if base_path else Path.cwd()
        logger.debug(f"LocalMediaStore rooted at {self.base_path}")

    def exists(self, ref: str) -> bool:
        """
        Report whether ``ref`` names a regular file.

        Raises:
            AdapterError: If the reference cannot be turned into a path.
        """
        path = self._resolve(ref)
        found = self._problem(ref, path) is None
        logger.debug(f"Media check {ref!r}: {'found' if found else 'missing'}")
        return found

    def get_local_file_path(self, ref: str) -> Path:
        """
        Resolve ``ref`` to the absolute path of an existing file.

        Raises:
            AdapterError: FILE_NOT_FOUND, NOT_A_FILE or PATH_RESOLUTION_FAILED.
        """
        path = self._resolve(ref)
        problem = self._problem(ref, path)
        if problem is not None:
            logger.error(f"Media not usable: {problem}")
            raise problem
        return path

    def _resolve(self, ref: str) -> Path:
        try:
            path = Path(ref).expanduser()
            if not path.is_absolute():
                path = (self.base_path / path).resolve()
        except (OSError, ValueError, RuntimeError) as e:
            raise AdapterError(
                code=PATH_RESOLUTION_FAILED,
                message=f"Invalid media reference: {ref}",
                details={"error": str(e)},
            ) from e
        return path

    @staticmethod
    def _problem(ref: str, path: Path) -> Optional[AdapterError]:
        if not path.exists():
            return AdapterError(
                code=FILE_NOT_FOUND,
                message=f"Media does not exist: {ref}",
                details={"path": str(path)},
            )
        if not path.is_file():
            return AdapterError(
                code=NOT_A_FILE,
                message=f"Path is not a file: {ref}",
                details={"path": str(path)},
            )
        return None
