"""Unit tests for YouTubeMediaUploader."""
import json
from unittest.mock import MagicMock, Mock, patch

import httplib2
import pytest
import requests
from googleapiclient.errors import HttpError

from adapters.youtube_media_uploader import YouTubeMediaUploader
from domain.models import SourceType, UploadPayload, UploadSource, Visibility
from ports.adapter_error import FILE_NOT_FOUND, AdapterError
from ports.media_store import MediaStore
from ports.media_uploader import MediaUploaderError, PermanentError, RetryableError


def http_error(status, reason=None):
    content = b""
    if reason:
        content = json.dumps({"error": {"errors": [{"reason": reason}], "message": reason}}).encode()
    return HttpError(httplib2.Response({"status": status}), content)


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "test.mp4"
    path.write_bytes(b"fake video")
    return path


@pytest.fixture
def mock_media_store(video_file):
    store = Mock(spec=MediaStore)
    store.get_local_file_path.return_value = video_file
    return store


@pytest.fixture
def mock_youtube():
    """YouTube client mock whose insert request finishes in one chunk."""
    youtube = MagicMock()
    youtube.videos.return_value.insert.return_value.next_chunk.return_value = (None, {"id": "vid_123"})
    return youtube


@pytest.fixture
def uploader(mock_media_store, mock_youtube):
    uploader = YouTubeMediaUploader(mock_media_store, upload_timeout_seconds=5, source_timeout_seconds=2)
    with patch.object(uploader, "_build_client", return_value=mock_youtube):
        yield uploader


@pytest.fixture
def payload():
    return UploadPayload(
        title="Test Video",
        description="Test description",
        tags=["a", "b"],
        visibility=Visibility.UNLISTED,
        language="en",
    )


FILE_SOURCE = UploadSource(SourceType.FILE, "videos/test.mp4")


@pytest.mark.unit
class TestUpload:

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    def test_file_upload(self, mock_media_upload, uploader, mock_youtube, mock_media_store, payload, video_file):
        receipt = uploader.upload("ya29.token", payload, FILE_SOURCE)

        assert receipt.video_id == "vid_123"
        assert receipt.thumbnail_uploaded is False
        mock_media_store.get_local_file_path.assert_called_once_with("videos/test.mp4")
        mock_media_upload.assert_called_once_with(str(video_file), chunksize=-1, resumable=True)

        insert_kwargs = mock_youtube.videos.return_value.insert.call_args.kwargs
        assert insert_kwargs["part"] == "snippet,status"
        assert insert_kwargs["body"]["snippet"]["title"] == "Test Video"
        assert insert_kwargs["body"]["status"]["privacyStatus"] == "unlisted"

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    @patch("adapters.youtube_media_uploader.requests.get")
    def test_remote_source_is_downloaded(self, mock_get, mock_media_upload, uploader, payload):
        response = MagicMock()
        response.__enter__.return_value = response
        response.iter_content.return_value = [b"remote ", b"bytes"]
        mock_get.return_value = response

        seen = {}

        def _capture(path, **kwargs):
            with open(path, "rb") as f:
                seen["content"] = f.read()
            seen["path"] = path
            return Mock()

        mock_media_upload.side_effect = _capture

        receipt = uploader.upload(
            "ya29.token", payload, UploadSource(SourceType.REMOTE, "https://cdn.example.com/clip.mov")
        )

        assert receipt.video_id == "vid_123"
        assert seen["content"] == b"remote bytes"
        assert seen["path"].endswith(".mov")
        mock_get.assert_called_once_with("https://cdn.example.com/clip.mov", stream=True, timeout=2)

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    @patch("adapters.youtube_media_uploader.requests.get")
    def test_remote_source_timeout_is_retryable(self, mock_get, mock_media_upload, uploader, payload):
        mock_get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(RetryableError):
            uploader.upload("t", payload, UploadSource(SourceType.REMOTE, "https://cdn.example.com/v.mp4"))

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    @patch("adapters.youtube_media_uploader.requests.get")
    def test_remote_source_404_is_permanent(self, mock_get, mock_media_upload, uploader, payload):
        response = MagicMock()
        response.__enter__.return_value = response
        response.raise_for_status.side_effect = requests.HTTPError(response=Mock(status_code=404))
        mock_get.return_value = response

        with pytest.raises(PermanentError) as exc_info:
            uploader.upload("t", payload, UploadSource(SourceType.REMOTE, "https://cdn.example.com/v.mp4"))

        assert "404" in str(exc_info.value)

    def test_missing_media_is_permanent(self, uploader, mock_media_store, payload):
        mock_media_store.get_local_file_path.side_effect = AdapterError(FILE_NOT_FOUND, "Media does not exist")

        with pytest.raises(PermanentError):
            uploader.upload("t", payload, FILE_SOURCE)

    @pytest.mark.parametrize(
        "status,reason,expected",
        [
            (503, None, RetryableError),
            (429, None, RetryableError),
            (403, "quotaExceeded", RetryableError),
            (403, "forbidden", PermanentError),
            (400, "invalidTitle", PermanentError),
            (401, None, PermanentError),
            (409, None, PermanentError),
        ],
    )
    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    def test_http_error_classification(
        self, mock_media_upload, uploader, mock_youtube, payload, status, reason, expected
    ):
        mock_youtube.videos.return_value.insert.return_value.next_chunk.side_effect = http_error(status, reason)

        with pytest.raises(expected):
            uploader.upload("t", payload, FILE_SOURCE)

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    def test_socket_timeout_is_retryable(self, mock_media_upload, uploader, mock_youtube, payload):
        mock_youtube.videos.return_value.insert.return_value.next_chunk.side_effect = TimeoutError("timed out")

        with pytest.raises(RetryableError):
            uploader.upload("t", payload, FILE_SOURCE)

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionResetError(104, "Connection reset by peer"),
            BrokenPipeError(32, "Broken pipe"),
            httplib2.ServerNotFoundError("Unable to find the server at youtube.googleapis.com"),
        ],
    )
    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    def test_transport_errors_are_retryable(self, mock_media_upload, uploader, mock_youtube, payload, error):
        mock_youtube.videos.return_value.insert.return_value.next_chunk.side_effect = error

        with pytest.raises(RetryableError):
            uploader.upload("t", payload, FILE_SOURCE)

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    def test_unreadable_media_is_permanent(self, mock_media_upload, uploader, payload):
        mock_media_upload.side_effect = PermissionError(13, "Permission denied")

        with pytest.raises(PermanentError):
            uploader.upload("t", payload, FILE_SOURCE)

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    def test_unexpected_error(self, mock_media_upload, uploader, mock_youtube, payload):
        mock_youtube.videos.return_value.insert.return_value.next_chunk.side_effect = ValueError("weird")

        with pytest.raises(MediaUploaderError) as exc_info:
            uploader.upload("t", payload, FILE_SOURCE)

        assert not isinstance(exc_info.value, (RetryableError, PermanentError))


@pytest.mark.unit
class TestThumbnail:

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    @patch("adapters.youtube_media_uploader.requests.get")
    def test_thumbnail_uploaded(self, mock_get, mock_media_upload, uploader, mock_youtube, payload):
        mock_get.return_value = Mock(content=b"png", headers={"Content-Type": "image/png"})
        payload.thumbnail_url = "https://cdn.example.com/thumb.png"

        receipt = uploader.upload("t", payload, FILE_SOURCE)

        assert receipt.thumbnail_uploaded is True
        mock_youtube.thumbnails.return_value.set.assert_called_once()
        assert mock_youtube.thumbnails.return_value.set.call_args.kwargs["videoId"] == "vid_123"

    @patch("adapters.youtube_media_uploader.MediaFileUpload")
    @patch("adapters.youtube_media_uploader.requests.get")
    def test_thumbnail_failure_does_not_fail_upload(self, mock_get, mock_media_upload, uploader, payload):
        mock_get.side_effect = requests.ConnectionError("refused")
        payload.thumbnail_url = "https://cdn.example.com/thumb.png"

        receipt = uploader.upload("t", payload, FILE_SOURCE)

        assert receipt.video_id == "vid_123"
        assert receipt.thumbnail_uploaded is False


@pytest.mark.unit
class TestPrepareMetadata:

    def test_full_metadata(self, mock_media_store, payload):
        body = YouTubeMediaUploader(mock_media_store)._prepare_metadata(payload)

        assert body == {
            "snippet": {
                "title": "Test Video",
                "description": "Test description",
                "categoryId": "22",
                "tags": ["a", "b"],
                "defaultLanguage": "en",
                "defaultAudioLanguage": "en",
            },
            "status": {
                "privacyStatus": "unlisted",
                "selfDeclaredMadeForKids": False,
            },
        }

    def test_minimal_metadata(self, mock_media_store):
        body = YouTubeMediaUploader(mock_media_store)._prepare_metadata(UploadPayload(title="T"))

        assert "tags" not in body["snippet"]
        assert "defaultLanguage" not in body["snippet"]
        assert body["status"]["privacyStatus"] == "private"


@pytest.mark.unit
@pytest.mark.parametrize(
    "content,expected",
    [
        ('{"error": {"errors": [{"reason": "quotaExceeded"}]}}', "quotaExceeded"),
        ('{"error": "plain"}', None),
        ("[1, 2]", None),
        ("not json", None),
        ("", None),
    ],
)
def test_error_reason(content, expected):
    assert YouTubeMediaUploader._error_reason(content) == expected
