"""Interface for video uploading (e.g., YouTube)."""
from abc import ABC, abstractmethod

from domain.models import UploadPayload, UploadReceipt, UploadSource


class MediaUploader(ABC):
    """
    Interface for video upload operations.

    Implementation examples: YouTube Data API, fakes for tests.
    """

    @abstractmethod
    def upload(self, access_token: str, payload: UploadPayload, source: UploadSource) -> UploadReceipt:
        """
        Upload a video to the platform.

        Args:
            access_token: Short-lived OAuth access token for the channel.
            payload: Video metadata (title, description, tags, etc.).
            source: Validated source. File sources are resolved through the
                media store; remote sources are fetched by the uploader.

        Returns:
            UploadReceipt with the platform video id.

        Raises:
            RetryableError: For temporary errors (quota, 429, 5xx, timeouts).
            PermanentError: For permanent errors (4xx, policy rejection, bad media).
            MediaUploaderError: For other errors.
        """
        pass


class MediaUploaderError(Exception):
    """Base exception for media uploader errors."""
    pass


class RetryableError(MediaUploaderError):
    """
    Temporary error; the task may succeed after an explicit retry.

    Examples: Quota exceeded, rate limiting (429), server errors (5xx), network timeouts.
    """
    pass


class PermanentError(MediaUploaderError):
    """
    Permanent error that should not be retried as-is.

    Examples: Invalid metadata (400), revoked access (401/403), policy rejection.
    """
    pass
