"""
Drive FS - A remote drive exposed as a synchronizable filesystem.
"""

from .services.drive_fs import DriveFs
from .services.drive_object import DriveObject
from .services.change_notifier import CancelToken, PollIntervalChannel
from .models.config import DriveConfig
from .models.data_models import EntryKind, HashKind, RemoteEntry, SourceInfo

__version__ = "1.0.0"
__all__ = [
    "DriveFs",
    "DriveObject",
    "CancelToken",
    "PollIntervalChannel",
    "DriveConfig",
    "EntryKind",
    "HashKind",
    "RemoteEntry",
    "SourceInfo"
]
