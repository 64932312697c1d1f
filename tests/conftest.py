import io
import logging

import pytest
from starlette.datastructures import UploadFile

from upload_relay.core.config import Settings
from upload_relay.services.notifier import AuditNotifier


# Application loggers don't propagate once dictConfig has run; caplog listens on root
@pytest.fixture(autouse=True)
def propagate_relay_logs(monkeypatch):
    monkeypatch.setattr(logging.getLogger("upload_relay"), "propagate", True)


# Fixture factory to create in-memory uploads with filename and content
@pytest.fixture
def make_upload():
    def _make_upload(filename: str, content: bytes) -> UploadFile:
        return UploadFile(file=io.BytesIO(content), filename=filename)

    return _make_upload


@pytest.fixture
def relay_settings(tmp_path):
    """Settings pointing every path at a throwaway directory."""
    public = tmp_path / "public"
    (public / "css").mkdir(parents=True)
    (public / "index.html").write_text("<h1>Upload files</h1>")
    (public / "css" / "style.css").write_text("body { margin: 0; }")

    blacklist = tmp_path / "blacklist.json"
    blacklist.write_text("[]")

    return Settings(
        _env_file=None,
        discord_webhook_url=None,
        blacklist_path=blacklist,
        blacklist_refresh_interval=3600,
        upload_dir=tmp_path / "uploads",
        public_dir=public,
        index_path=public / "index.html",
    )


class RecordingNotifier(AuditNotifier):
    """Keeps scheduled audit entries instead of delivering them."""

    def __init__(self):
        super().__init__(webhook_url=None)
        self.messages: list[str] = []

    def schedule(self, message: str):
        self.messages.append(message)
        return None


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()
