"""YouTube API media uploader implementation."""
from __future__ import annotations

import io
import json
import logging
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import urlparse

import google_auth_httplib2
import httplib2
import requests
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload, MediaIoBaseUpload

from domain.models import SourceType, UploadPayload, UploadReceipt, UploadSource
from ports.adapter_error import AdapterError
from ports.media_store import MediaStore
from ports.media_uploader import MediaUploader, MediaUploaderError, PermanentError, RetryableError

logger = logging.getLogger(__name__)

DOWNLOAD_CHUNK_SIZE = 1024 * 1024


class YouTubeMediaUploader(MediaUploader):
    """
    YouTube Data API v3 media uploader implementation.

    Authorizes each upload with the access token it is given, uploads the
    video (local file through MediaStore, or a remote URL downloaded to a
    temporary file first), then sets the thumbnail on a best-effort basis.
    """

    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    # 403 reasons that clear up on their own (quota resets daily)
    RETRYABLE_REASONS = {
        "quotaExceeded",
        "rateLimitExceeded",
        "userRateLimitExceeded",
        "uploadLimitExceeded",
        "backendError",
    }

    def __init__(
        self,
        media_store: MediaStore,
        upload_timeout_seconds: float = 600,
        source_timeout_seconds: float = 60,
    ):
        """
        Initialize YouTube API media uploader.

        Args:
            media_store: Media store for resolving file sources to local paths.
            upload_timeout_seconds: Socket timeout for YouTube API calls.
            source_timeout_seconds: Timeout for fetching remote sources and thumbnails.
        """
        self.media_store = media_store
        self.upload_timeout_seconds = upload_timeout_seconds
        self.source_timeout_seconds = source_timeout_seconds

        logger.info("YouTubeMediaUploader initialized")

    def _build_client(self, access_token: str):
        credentials = Credentials(token=access_token)
        http = google_auth_httplib2.AuthorizedHttp(
            credentials,
            http=httplib2.Http(timeout=self.upload_timeout_seconds),
        )
        return build("youtube", "v3", http=http, cache_discovery=False)

    def upload(self, access_token: str, payload: UploadPayload, source: UploadSource) -> UploadReceipt:
        """
        Upload a video and set its thumbnail.

        Raises:
            RetryableError: For temporary errors (quota, 429, 5xx, timeouts,
                dropped connections).
            PermanentError: For permanent errors (4xx, missing media).
            MediaUploaderError: For other errors.
        """
        try:
            logger.info(f"Starting media upload: {payload.title}")
            youtube = self._build_client(access_token)
            body = self._prepare_metadata(payload)

            with self._local_source(source) as video_path:
                media = MediaFileUpload(
                    str(video_path),
                    chunksize=-1,
                    resumable=True,
                )

                logger.debug(f"Uploading media file: {video_path}")
                request = youtube.videos().insert(
                    part=",".join(body.keys()),
                    body=body,
                    media_body=media,
                )

                response = None
                while response is None:
                    status, response = request.next_chunk()
                    if status:
                        progress = int(status.progress() * 100)
                        logger.debug(f"Upload progress: {progress}%")

            video_id = response["id"]
            logger.info(f"Media uploaded successfully: video_id={video_id}")

        except HttpError as e:
            raise self._classify_http_error(e) from e

        except AdapterError as e:
            error_msg = f"Media file not available: {e}"
            logger.error(f"Upload failed: {error_msg}")
            raise PermanentError(error_msg) from e

        except (requests.Timeout, requests.ConnectionError) as e:
            raise RetryableError(f"Fetching remote source failed: {e}") from e

        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            error_msg = f"Remote source returned HTTP {status_code}"
            if status_code is not None and status_code >= 500:
                raise RetryableError(error_msg) from e
            raise PermanentError(error_msg) from e

        except TimeoutError as e:
            raise RetryableError(f"Upload timed out: {e}") from e

        except (FileNotFoundError, PermissionError) as e:
            logger.error(f"Upload failed: media file not readable: {e}")
            raise PermanentError(f"Media file not readable: {e}") from e

        # requests exceptions are OSError subclasses too, handled above
        except (OSError, httplib2.HttpLib2Error) as e:
            logger.warning(f"Upload interrupted by transport error: {e!r}")
            raise RetryableError(f"Network error during upload: {e}") from e

        except MediaUploaderError:
            raise

        except Exception as e:
            error_msg = f"Unexpected error during upload: {str(e)}"
            logger.exception(f"Upload failed: {error_msg}")
            raise MediaUploaderError(error_msg) from e

        thumbnail_uploaded = False
        if payload.thumbnail_url:
            thumbnail_uploaded = self._upload_thumbnail(youtube, video_id, payload.thumbnail_url)

        return UploadReceipt(video_id=video_id, thumbnail_uploaded=thumbnail_uploaded)

    @contextmanager
    def _local_source(self, source: UploadSource) -> Iterator[Path]:
        """Yield a local path for the source, downloading remote ones first."""
        if source.source_type == SourceType.FILE:
            yield self.media_store.get_local_file_path(source.value)
            return

        suffix = Path(urlparse(source.value).path).suffix or ".mp4"
        with tempfile.TemporaryDirectory(prefix="yt-autopilot-") as tmp_dir:
            target = Path(tmp_dir) / f"source{suffix}"
            logger.info(f"Downloading remote source {source.value}")
            with requests.get(source.value, stream=True, timeout=self.source_timeout_seconds) as response:
                response.raise_for_status()
                with open(target, "wb") as f:
                    for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            logger.debug(f"Remote source saved to {target} ({target.stat().st_size} bytes)")
            yield target

    def _upload_thumbnail(self, youtube, video_id: str, thumbnail_url: str) -> bool:
        """
        Upload custom thumbnail for a video (best effort).

        Returns:
            True if thumbnail uploaded successfully.
        """
        try:
            logger.info(f"Uploading thumbnail for video {video_id}")

            response = requests.get(thumbnail_url, timeout=self.source_timeout_seconds)
            response.raise_for_status()
            mimetype = response.headers.get("Content-Type", "image/jpeg").split(";")[0]

            media = MediaIoBaseUpload(
                io.BytesIO(response.content),
                mimetype=mimetype,
                resumable=False,
            )
            youtube.thumbnails().set(videoId=video_id, media_body=media).execute()

            logger.info(f"Thumbnail uploaded successfully for video {video_id}")
            return True

        except HttpError as e:
            if e.resp.status in self.RETRYABLE_STATUS_CODES:
                logger.warning(f"Thumbnail upload failed (retryable): {e}")
            else:
                logger.error(f"Thumbnail upload failed (permanent): {e}")
            return False

        except Exception as e:
            logger.warning(f"Thumbnail upload error: {e}")
            return False

    def _prepare_metadata(self, payload: UploadPayload) -> dict:
        """
        Prepare video metadata for YouTube API.

        Returns:
            Metadata dictionary for API request.
        """
        snippet = {
            "title": payload.title,
            "description": payload.description,
            "categoryId": payload.category_id,
        }

        if payload.tags:
            snippet["tags"] = payload.tags

        if payload.language:
            snippet["defaultLanguage"] = payload.language
            snippet["defaultAudioLanguage"] = payload.language

        status = {
            "privacyStatus": payload.visibility.value,
            "selfDeclaredMadeForKids": payload.made_for_kids,
        }

        body = {
            "snippet": snippet,
            "status": status,
        }

        logger.debug(f"Media metadata prepared: {body}")
        return body

    def _classify_http_error(self, error: HttpError) -> MediaUploaderError:
        """
        Map a YouTube API error onto the retryable/permanent split.

        Args:
            error: HTTP error from API.

        Returns:
            RetryableError or PermanentError to raise.
        """
        status_code = error.resp.status
        error_content = error.content.decode("utf-8") if error.content else ""
        reason = self._error_reason(error_content)

        logger.error(f"YouTube API error {status_code} ({reason or 'no reason'}): {error_content}")

        if status_code in self.RETRYABLE_STATUS_CODES or reason in self.RETRYABLE_REASONS:
            return RetryableError(f"Temporary error {status_code} ({reason or 'server error'})")

        permanent_errors = {
            400: "Invalid request (check media format, metadata)",
            401: "Authentication failed (check credentials)",
            403: "Forbidden (check permissions, channel status)",
            404: "Resource not found",
        }

        if status_code in permanent_errors:
            detail = f" [{reason}]" if reason else ""
            return PermanentError(f"{permanent_errors[status_code]}{detail}")

        return PermanentError(f"HTTP error {status_code}: {error_content}")

    @staticmethod
    def _error_reason(error_content: str) -> Optional[str]:
        try:
            data = json.loads(error_content)
        except ValueError:
            return None
        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, dict):
            return None
        errors = error.get("errors") or []
        if errors and isinstance(errors[0], dict):
            return errors[0].get("reason")
        return None
