"""
Tests for configuration loading.
"""
import pytest

from drive_fs.models.config import DriveConfig, parse_size


ENV_KEYS = [
    'DRIVE_API_URL', 'DRIVE_ACCESS_TOKEN', 'DRIVE_ROOT_FOLDER_ID', 'DRIVE_PAGE_SIZE',
    'DRIVE_CHUNK_SIZE', 'DRIVE_CHANNEL_ID', 'DRIVE_USER_ID', 'DRIVE_ENCRYPT_FILES',
    'DRIVE_RANDOM_CHUNK_NAME', 'DRIVE_TIMEOUT', 'DRIVE_PACER_MIN_SLEEP',
    'DRIVE_PACER_MAX_SLEEP', 'DRIVE_POLL_INTERVAL'
]


class TestParseSize:
    """Test cases for parse_size."""

    def test_suffixes(self):
        assert parse_size("1024") == 1024
        assert parse_size("512k") == 512 << 10
        assert parse_size("64M") == 64 << 20
        assert parse_size("2GiB") == 2 << 30
        assert parse_size(" 10 b ") == 10

    def test_invalid(self):
        for value in ("", "abc", "12T", "-5M"):
            with pytest.raises(ValueError):
                parse_size(value)


class TestDriveConfig:
    """Test cases for DriveConfig."""

    def test_from_env_test_environment(self):
        """Test values from the test environment are picked up."""
        config = DriveConfig.from_env()

        assert config.api_url == "http://localhost:8080"
        assert config.root_folder_id == "root-folder"
        assert config.page_size == 2
        assert config.chunk_size == 64 << 20
        assert config.channel_id == 42
        assert config.pacer_min_sleep == 0
        assert config.pacer_max_sleep == 0

    def test_from_env_defaults(self, monkeypatch):
        """Test defaults when nothing is configured."""
        for key in ENV_KEYS:
            monkeypatch.delenv(key, raising=False)

        config = DriveConfig.from_env()

        assert config.api_url == "http://localhost:8080"
        assert config.access_token == ""
        assert config.root_folder_id == "root"
        assert config.page_size == 500
        assert config.chunk_size == 500 << 20
        assert config.encrypt_files is False
        assert config.random_chunk_name is False
        assert config.timeout == 30
        assert config.poll_interval == 60.0

    def test_from_env_flags(self, monkeypatch):
        monkeypatch.setenv('DRIVE_ENCRYPT_FILES', 'True')
        monkeypatch.setenv('DRIVE_RANDOM_CHUNK_NAME', 'true')
        monkeypatch.setenv('DRIVE_ACCESS_TOKEN', 'secret')
        monkeypatch.setenv('DRIVE_USER_ID', '7')

        config = DriveConfig.from_env()

        assert config.encrypt_files is True
        assert config.random_chunk_name is True
        assert config.access_token == "secret"
        assert config.user_id == 7

    def test_validation(self):
        with pytest.raises(ValueError, match="page_size"):
            DriveConfig(api_url="http://x", page_size=0)
        with pytest.raises(ValueError, match="chunk_size"):
            DriveConfig(api_url="http://x", chunk_size=0)
