"""
Models package for the drive filesystem adapter.
"""
from .data_models import (
    EntryKind, HashKind, RemoteEntry, PageMeta, ListPage,
    SourceInfo, UploadSession, ChangeEvent
)
from .config import DriveConfig, parse_size
from .errors import (
    DriveFsError, UnsupportedHashError, HashUnavailableError, UploadError,
    DirectoryNotFoundError, ObjectNotFoundError
)

__all__ = [
    'EntryKind',
    'HashKind',
    'RemoteEntry',
    'PageMeta',
    'ListPage',
    'SourceInfo',
    'UploadSession',
    'ChangeEvent',
    'DriveConfig',
    'parse_size',
    'DriveFsError',
    'UnsupportedHashError',
    'HashUnavailableError',
    'UploadError',
    'DirectoryNotFoundError',
    'ObjectNotFoundError'
]
