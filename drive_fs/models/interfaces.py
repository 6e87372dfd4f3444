"""
Capability interfaces implemented by the drive backend.

Callers depend on the narrowest capability they need; DriveFs satisfies all
of them structurally.
"""
from typing import BinaryIO, Callable, List, Protocol, TYPE_CHECKING, runtime_checkable

from .data_models import EntryKind, HashKind, RemoteEntry, SourceInfo

if TYPE_CHECKING:
    from ..services.change_notifier import CancelToken, ChangeNotifier, PollIntervalChannel
    from ..services.drive_object import DriveObject


ChangeCallback = Callable[[str, EntryKind], None]


@runtime_checkable
class Lister(Protocol):
    def list(self, path: str) -> List[RemoteEntry]:
        ...


@runtime_checkable
class Uploader(Protocol):
    def put(self, source: BinaryIO, src: SourceInfo) -> 'DriveObject':
        ...


@runtime_checkable
class HashProvider(Protocol):
    def hash(self, remote: str, kind: HashKind) -> str:
        ...


@runtime_checkable
class ChangeSource(Protocol):
    def change_notify(self, cancel: 'CancelToken', on_change: ChangeCallback,
                      poll_interval: 'PollIntervalChannel') -> 'ChangeNotifier':
        ...
