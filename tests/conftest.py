"""
Pytest configuration and fixtures for the drive adapter tests.
"""
import json
import os

import pytest
import requests

from drive_fs.clients.drive_api import DriveAPI
from drive_fs.clients.pacer import Pacer
from drive_fs.services.dir_cache import DirCache


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    test_env = {
        'DRIVE_API_URL': 'http://localhost:8080',
        'DRIVE_ROOT_FOLDER_ID': 'root-folder',
        'DRIVE_PAGE_SIZE': '2',
        'DRIVE_CHUNK_SIZE': '64M',
        'DRIVE_CHANNEL_ID': '42',
        'DRIVE_PACER_MIN_SLEEP': '0',
        'DRIVE_PACER_MAX_SLEEP': '0'
    }

    for key, value in test_env.items():
        os.environ[key] = value

    yield


@pytest.fixture
def api_client():
    """Drive API client pointed at a local test URL."""
    return DriveAPI("http://localhost:8080")


@pytest.fixture
def fast_pacer():
    """Pacer that never sleeps."""
    return Pacer(min_sleep=0, max_sleep=0)


@pytest.fixture
def dir_cache():
    """Directory cache rooted at root-folder."""
    return DirCache("root-folder")


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects with a given status and body."""
    def _make(status_code=200, json_body=None, text=None):
        response = requests.Response()
        response.status_code = status_code
        response.reason = "OK" if status_code < 400 else "Error"
        response.url = "http://localhost:8080/api/test"
        response.encoding = "utf-8"
        if json_body is not None:
            response._content = json.dumps(json_body).encode("utf-8")
            response.headers["Content-Type"] = "application/json"
        else:
            response._content = (text or "").encode("utf-8")
        return response

    return _make


def file_item(item_id, name=None, parent_id="root-folder", item_type="file", size=1, hash_value=""):
    """Build an API item dictionary."""
    return {
        "id": item_id,
        "name": name or f"{item_id}.txt",
        "mimeType": "drive/folder" if item_type == "folder" else "text/plain",
        "size": size,
        "parentId": parent_id,
        "type": item_type,
        "updatedAt": "2026-01-01T00:00:00Z",
        "hash": hash_value
    }


@pytest.fixture
def item():
    """Factory for API item dictionaries."""
    return file_item
