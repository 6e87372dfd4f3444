"""
Core data models for the drive filesystem adapter.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional


class EntryKind(str, Enum):
    """Kind of a remote entry."""
    FILE = 'file'
    FOLDER = 'folder'


class HashKind(str, Enum):
    """Hash kinds a caller may ask for. Only DRIVE is served by the remote."""
    DRIVE = 'drive'
    MD5 = 'md5'
    SHA1 = 'sha1'
    SHA256 = 'sha256'


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as returned by the API, including nanosecond fractions."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


@dataclass
class RemoteEntry:
    """Represents a file or folder as returned by the remote API."""
    id: str
    name: str
    kind: EntryKind
    parent_id: str = ''
    mime_type: str = ''
    size: int = 0
    updated_at: Optional[datetime] = None
    hash: str = ''  # empty means no hash recorded yet

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.FOLDER

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RemoteEntry':
        """Create from an API item dictionary."""
        if not isinstance(data, dict) or 'id' not in data:
            raise ValueError(f"Item is missing an id: {data!r}")
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            kind=EntryKind.FOLDER if data.get('type') == 'folder' else EntryKind.FILE,
            parent_id=data.get('parentId') or '',
            mime_type=data.get('mimeType') or '',
            size=int(data.get('size') or 0),
            updated_at=parse_timestamp(data.get('updatedAt')),
            hash=data.get('hash') or ''
        )


@dataclass
class PageMeta:
    """
    Paging counters reported by the server.

    Advisory only, not for control flow: the server is known to report
    counts that have nothing to do with the real listing size.
    """
    count: int = 0
    total_pages: int = 0
    current_page: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PageMeta':
        data = data or {}
        return cls(
            count=int(data.get('count') or 0),
            total_pages=int(data.get('totalPages') or 0),
            current_page=int(data.get('currentPage') or 0)
        )


@dataclass
class ListPage:
    """One page of a directory listing."""
    items: List[RemoteEntry]
    meta: PageMeta = field(default_factory=PageMeta)

    @property
    def next_cursor(self) -> Optional[str]:
        """Cursor for the following page, derived from the last item id."""
        if not self.items or not self.items[-1].id:
            return None
        return self.items[-1].id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ListPage':
        """Create from a list response body."""
        if not isinstance(data, dict) or not isinstance(data.get('items', []), list):
            raise ValueError("List response has no items array")
        return cls(
            items=[RemoteEntry.from_dict(item) for item in data.get('items') or []],
            meta=PageMeta.from_dict(data.get('meta'))
        )


@dataclass
class SourceInfo:
    """Describes the local data being uploaded."""
    remote: str
    size: int  # -1 when unknown
    mod_time: datetime
    mime_type: Optional[str] = None


@dataclass
class UploadSession:
    """State of an in-progress chunked upload."""
    file_name: str
    folder_id: str
    upload_id: str
    channel_id: int
    chunk_size: int
    total_chunks_planned: int  # -1 when the source size is unknown
    encrypt: bool = False
    parts_uploaded: int = 0
    bytes_uploaded: int = 0


@dataclass
class ChangeEvent:
    """A change notification received from the event stream."""
    event_type: str  # 'file_create', 'file_update', 'file_delete', 'file_move'
    name: str
    kind: EntryKind
    parent_id: str
    dest_parent_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChangeEvent':
        """Create from a decoded event payload."""
        source = data.get('source')
        if not isinstance(source, dict) or not source.get('name'):
            raise ValueError(f"Event has no source: {data!r}")
        return cls(
            event_type=data.get('type', ''),
            name=source['name'],
            kind=EntryKind.FOLDER if source.get('type') == 'folder' else EntryKind.FILE,
            parent_id=source.get('parentId') or '',
            dest_parent_id=source.get('destParentId')
        )
