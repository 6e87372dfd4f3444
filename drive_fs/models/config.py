"""
Configuration classes for the remote drive filesystem adapter.
"""
import os
import re
from dataclasses import dataclass


_SIZE_SUFFIXES = {
    '': 1,
    'b': 1,
    'k': 1 << 10,
    'm': 1 << 20,
    'g': 1 << 30,
}


def parse_size(value: str) -> int:
    """
    Parse a byte size with an optional binary suffix ("64M", "512k", "1G").

    Args:
        value: Size string

    Returns:
        Size in bytes

    Raises:
        ValueError: If the string is not a valid size
    """
    match = re.fullmatch(r'\s*(\d+)\s*([bkmg]?)i?b?\s*', value.lower())
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, suffix = match.groups()
    return int(number) * _SIZE_SUFFIXES[suffix]


@dataclass
class DriveConfig:
    """Main configuration for the drive adapter."""
    api_url: str
    access_token: str = ''
    root_folder_id: str = 'root'
    page_size: int = 500
    chunk_size: int = 500 << 20
    channel_id: int = 0
    user_id: int = 0
    encrypt_files: bool = False
    random_chunk_name: bool = False
    timeout: int = 30
    pacer_min_sleep: float = 0.01
    pacer_max_sleep: float = 2.0
    poll_interval: float = 60.0

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")

    @classmethod
    def from_env(cls) -> 'DriveConfig':
        """Create DriveConfig from environment variables."""
        return cls(
            api_url=os.getenv('DRIVE_API_URL', 'http://localhost:8080'),
            access_token=os.getenv('DRIVE_ACCESS_TOKEN', ''),
            root_folder_id=os.getenv('DRIVE_ROOT_FOLDER_ID', 'root'),
            page_size=int(os.getenv('DRIVE_PAGE_SIZE', '500')),
            chunk_size=parse_size(os.getenv('DRIVE_CHUNK_SIZE', '500M')),
            channel_id=int(os.getenv('DRIVE_CHANNEL_ID', '0')),
            user_id=int(os.getenv('DRIVE_USER_ID', '0')),
            encrypt_files=os.getenv('DRIVE_ENCRYPT_FILES', 'false').lower() == 'true',
            random_chunk_name=os.getenv('DRIVE_RANDOM_CHUNK_NAME', 'false').lower() == 'true',
            timeout=int(os.getenv('DRIVE_TIMEOUT', '30')),
            pacer_min_sleep=float(os.getenv('DRIVE_PACER_MIN_SLEEP', '0.01')),
            pacer_max_sleep=float(os.getenv('DRIVE_PACER_MAX_SLEEP', '2')),
            poll_interval=float(os.getenv('DRIVE_POLL_INTERVAL', '60')),
        )
