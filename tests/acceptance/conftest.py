"""
Fixtures for acceptance tests.

Real SQL stores (SQLite file in tmp_path) and a real LocalMediaStore;
only the OAuth endpoint and the YouTube uploader are faked.
"""
import pytest

from adapters.local_media_store import LocalMediaStore
from adapters.sql_account_store import SqlAccountStore
from adapters.sql_task_store import SqlTaskStore
from domain.credentials import CredentialResolver
from domain.executor import TaskExecutor
from domain.lifecycle import TaskLifecycle
from domain.models import SourceType, TaskStatus, UploadTask, YoutubeAccount
from domain.services import AutopilotService
from domain.source_validator import SourceValidator
from tests.acceptance.fake_oauth_client import FakeOAuthClient
from tests.acceptance.fake_youtube_uploader import FakeYouTubeUploader


@pytest.fixture
def task_store(engine):
    return SqlTaskStore(engine)


@pytest.fixture
def account_store(engine):
    return SqlAccountStore(engine)


@pytest.fixture
def media_dir(tmp_path):
    """Base directory holding videos/test.mp4."""
    base = tmp_path / "media"
    (base / "videos").mkdir(parents=True)
    (base / "videos" / "test.mp4").write_bytes(b"\x00" * 1024)
    return base


@pytest.fixture
def oauth_client():
    return FakeOAuthClient()


@pytest.fixture
def uploader():
    return FakeYouTubeUploader()


@pytest.fixture
def executor(task_store, account_store, media_dir, oauth_client, uploader):
    return TaskExecutor(
        task_store,
        CredentialResolver(account_store, oauth_client),
        SourceValidator(LocalMediaStore(base_path=media_dir)),
        uploader,
    )


@pytest.fixture
def autopilot(task_store, executor):
    return AutopilotService(task_store, executor)


@pytest.fixture
def lifecycle(task_store):
    return TaskLifecycle(task_store)


@pytest.fixture
def add_account(account_store):
    """Factory registering an account."""
    def _add(label="Main channel", refresh_token="1//refresh"):
        return account_store.create(
            YoutubeAccount(
                id=None,
                label=label,
                client_id="client-id",
                client_secret="client-secret",
                redirect_uri="http://localhost:8080/",
                refresh_token=refresh_token,
            )
        )
    return _add


@pytest.fixture
def add_task(task_store):
    """Factory creating a queued immediate task from keyword overrides."""
    def _add(**overrides):
        values = dict(
            id=None,
            title="Test Video",
            description="Uploaded by the autopilot",
            source_type=SourceType.REMOTE,
            source_value="https://example.com/v.mp4",
            status=TaskStatus.QUEUED,
        )
        values.update(overrides)
        return task_store.create(UploadTask(**values))
    return _add
