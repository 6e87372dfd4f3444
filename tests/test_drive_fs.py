"""
Tests for the DriveFs adapter facade.
"""
import io
import threading
from datetime import datetime, timezone

import pytest
from unittest.mock import Mock, patch

from drive_fs.models.config import DriveConfig
from drive_fs.models.data_models import HashKind, SourceInfo
from drive_fs.models.errors import ObjectNotFoundError, UnsupportedHashError
from drive_fs.models.interfaces import ChangeSource, HashProvider, Lister, Uploader
from drive_fs.services.change_notifier import CancelToken, NotifierState, PollIntervalChannel
from drive_fs.services.drive_fs import DriveFs


MOD_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def drive():
    fs = DriveFs(DriveConfig.from_env())
    yield fs
    fs.close()


def page(items):
    return {"items": items, "meta": {"count": 0, "totalPages": 0, "currentPage": 1}}


class TestDriveFs:
    """Test cases for DriveFs."""

    def test_implements_capabilities(self, drive):
        """Test the adapter satisfies every capability interface."""
        assert isinstance(drive, Lister)
        assert isinstance(drive, Uploader)
        assert isinstance(drive, HashProvider)
        assert isinstance(drive, ChangeSource)
        assert not isinstance(object(), Lister)

    def test_built_from_config(self, drive):
        assert drive.api.api_root == "http://localhost:8080/api"
        assert drive.dir_cache.get("") == "root-folder"
        assert drive.lister.page_size == 2
        assert drive.uploader.chunk_size == 64 << 20
        assert drive.uploader.channel_id == 42

    @patch('drive_fs.clients.drive_api.requests.Session.request')
    def test_put_zero_length(self, mock_request, drive, make_response, item):
        """Test an empty upload is a single create call with no chunks and no reads."""
        mock_request.return_value = make_response(200, item("file-9", "empty.txt", size=0, hash_value="e3b0"))

        obj = drive.put(io.BytesIO(b""), SourceInfo("empty.txt", 0, MOD_TIME))

        assert mock_request.call_count == 1
        call_args = mock_request.call_args
        assert call_args[1]['method'] == 'POST'
        assert call_args[1]['url'] == "http://localhost:8080/api/files"
        assert call_args[1]['json']['size'] == 0
        assert obj.id == "file-9"
        assert obj.hash(HashKind.DRIVE) == "e3b0"
        assert mock_request.call_count == 1

    @patch('drive_fs.clients.drive_api.requests.Session.request')
    def test_put_into_subdirectory(self, mock_request, drive, make_response, item):
        mock_request.side_effect = [
            make_response(200, page([item("10", "docs", item_type="folder")])),
            make_response(200, text=""),
            make_response(200, item("11", "a.txt", parent_id="10", size=3)),
        ]

        obj = drive.put(io.BytesIO(b"abc"), SourceInfo("docs/a.txt", 3, MOD_TIME))

        assert obj.parent_id == "10"
        upload_call = mock_request.call_args_list[1][1]
        assert "/api/uploads/" in upload_call['url']
        assert mock_request.call_args_list[2][1]['json']['parentId'] == "10"

    @patch('drive_fs.clients.drive_api.requests.Session.request')
    def test_hash_unsupported_kind(self, mock_request, drive):
        """Test an unsupported kind fails before the object is even looked up."""
        with pytest.raises(UnsupportedHashError):
            drive.hash("file.bin", HashKind.MD5)

        mock_request.assert_not_called()

    @patch('drive_fs.clients.drive_api.requests.Session.request')
    def test_hash_by_path(self, mock_request, drive, make_response, item):
        mock_request.side_effect = [
            make_response(200, page([item("5", "file.bin")])),
            make_response(200, item("5", "file.bin", hash_value="abc123")),
        ]

        assert drive.hash("file.bin", HashKind.DRIVE) == "abc123"
        assert mock_request.call_args_list[1][1]['url'] == "http://localhost:8080/api/files/5"

    @patch('drive_fs.clients.drive_api.requests.Session.request')
    def test_new_object_missing(self, mock_request, drive, make_response, item):
        mock_request.return_value = make_response(200, page([item("5", "other.bin")]))

        with pytest.raises(ObjectNotFoundError):
            drive.new_object("file.bin")

    @patch('drive_fs.clients.drive_api.requests.Session.request')
    def test_new_object_is_not_a_folder(self, mock_request, drive, make_response, item):
        mock_request.return_value = make_response(200, page([item("5", "docs", item_type="folder")]))

        with pytest.raises(ObjectNotFoundError):
            drive.new_object("docs")

    def test_change_notify_starts_subscription(self):
        """Test change_notify returns a running notifier that stops on channel close."""
        closed = threading.Event()
        response = Mock(raw=None)

        def iter_lines(decode_unicode=False):
            closed.wait(5)
            yield from ()

        response.iter_lines.side_effect = iter_lines
        response.close.side_effect = closed.set
        api = Mock()
        api.open_event_stream.return_value = response
        drive = DriveFs(DriveConfig.from_env(), api=api)
        cancel = CancelToken()
        channel = PollIntervalChannel()

        notifier = drive.change_notify(cancel, Mock(), channel)
        channel.close()

        assert notifier.wait_closed(2)
        assert notifier.state == NotifierState.CLOSED
