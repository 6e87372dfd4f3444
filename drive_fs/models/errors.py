"""
Exceptions raised by the drive adapter.
"""


class DriveFsError(Exception):
    """Base exception for drive adapter errors."""
    pass


class UnsupportedHashError(DriveFsError):
    """Raised when a caller asks for a hash kind the remote does not provide."""

    def __init__(self, kind):
        super().__init__(f"unsupported hash kind: {kind}")
        self.kind = kind


class HashUnavailableError(DriveFsError):
    """Raised when the remote has not computed a hash for the object yet."""

    def __init__(self, object_id: str):
        super().__init__(f"hash metadata unavailable for object {object_id}")
        self.object_id = object_id


class UploadError(DriveFsError):
    """Raised when an upload is aborted."""
    pass


class DirectoryNotFoundError(DriveFsError):
    """Raised when a path component does not resolve to a remote folder."""
    pass


class ObjectNotFoundError(DriveFsError):
    """Raised when a remote file does not exist."""
    pass
