"""
Client-side handle for a remote file.
"""
from datetime import datetime
from typing import Optional

from loguru import logger

from ..clients.drive_api import DriveAPI, DriveAPIError
from ..clients.pacer import Pacer
from ..models.data_models import HashKind, RemoteEntry
from ..models.errors import HashUnavailableError, ObjectNotFoundError, UnsupportedHashError


SUPPORTED_HASH = HashKind.DRIVE


class DriveObject:
    """
    A remote file and its last known metadata.

    A non-empty hash is memoized for the lifetime of the handle. An empty
    hash means the server has not computed it yet; that is reported as an
    error and never cached, so a later call asks the server again.
    """

    def __init__(self, api: DriveAPI, pacer: Pacer, remote: str,
                 entry: Optional[RemoteEntry] = None):
        self.api = api
        self.pacer = pacer
        self.remote = remote
        self.id = ''
        self.parent_id = ''
        self.size = -1
        self.mime_type = ''
        self.mod_time: Optional[datetime] = None
        self.metadata: Optional[RemoteEntry] = None
        self._hash: Optional[str] = None
        if entry is not None:
            self.set_metadata(entry)

    def __repr__(self):
        return f"DriveObject(remote={self.remote!r}, id={self.id!r})"

    def set_metadata(self, entry: RemoteEntry) -> None:
        """Adopt a metadata snapshot, memoizing its hash when one is present."""
        self.metadata = entry
        self.id = entry.id
        self.parent_id = entry.parent_id
        self.size = entry.size
        self.mime_type = entry.mime_type
        self.mod_time = entry.updated_at
        if entry.hash:
            self._hash = entry.hash

    def refresh(self) -> RemoteEntry:
        """
        Re-read this object's metadata from the server.

        Raises:
            ObjectNotFoundError: If the handle has no id yet
            DriveAPIError: If the lookup fails
        """
        if not self.id:
            raise ObjectNotFoundError(f"object has no id: {self.remote}")

        data = self.pacer.call(lambda: self.api.get_file(self.id))
        try:
            entry = RemoteEntry.from_dict(data)
        except (ValueError, TypeError) as e:
            raise DriveAPIError(f"Drive API returned malformed metadata for {self.id}: {e}") from e

        self.set_metadata(entry)
        return entry

    def hash(self, kind: HashKind) -> str:
        """
        Return the server-computed content hash.

        Raises:
            UnsupportedHashError: If kind is not the drive hash; no request is made
            HashUnavailableError: If the server has no hash for the object yet
            DriveAPIError: If the lookup fails
        """
        if kind != SUPPORTED_HASH:
            raise UnsupportedHashError(kind)

        if self._hash:
            return self._hash

        entry = self.refresh()
        if not entry.hash:
            logger.debug(f"Hash not yet available for {self.remote} ({self.id})")
            raise HashUnavailableError(self.id)

        return self._hash
