# Service packages
from .dir_cache import DirCache
from .lister import DirectoryLister
from .uploader import ChunkedUploader, IdentityEncoder
from .drive_object import DriveObject
from .change_notifier import (
    ChangeNotifier, NotifierState, PollIntervalChannel, PollSignal, SignalKind, CancelToken
)
from .drive_fs import DriveFs

__all__ = [
    'DirCache',
    'DirectoryLister',
    'ChunkedUploader',
    'IdentityEncoder',
    'DriveObject',
    'ChangeNotifier',
    'NotifierState',
    'PollIntervalChannel',
    'PollSignal',
    'SignalKind',
    'CancelToken',
    'DriveFs'
]
