"""
Chunked uploads: split a source stream into parts, send them one by one,
then finalize the upload into a file.
"""
import hashlib
import math
import mimetypes
import secrets
from typing import BinaryIO, Optional, Protocol

from loguru import logger

from ..clients.drive_api import DriveAPI, DriveAPIError
from ..clients.pacer import Pacer
from ..models.data_models import RemoteEntry, SourceInfo, UploadSession, format_timestamp
from ..models.errors import UploadError
from .dir_cache import normalize_path, split_path
from .lister import DirectoryLister


# One initial attempt plus one retry per chunk.
CHUNK_ATTEMPTS = 2


class PartEncoder(Protocol):
    def encode(self, part_no: int, data: bytes) -> bytes:
        ...


class IdentityEncoder:
    """Sends part bytes unchanged; the server encrypts when asked to."""

    def encode(self, part_no: int, data: bytes) -> bytes:
        return data


def read_chunk(stream: BinaryIO, size: int) -> bytes:
    """Read up to `size` bytes, tolerating short reads from pipes and sockets."""
    buffer = bytearray()
    while len(buffer) < size:
        data = stream.read(size - len(buffer))
        if not data:
            break
        buffer.extend(data)
    return bytes(buffer)


def make_upload_id(src: SourceInfo, user_id: int) -> str:
    """Stable upload id for a given source, user and modification time."""
    mod_time_ns = int(src.mod_time.timestamp() * 1_000_000_000)
    key = f"{normalize_path(src.remote)}:{src.size}:{mod_time_ns}:{user_id}"
    return hashlib.md5(key.encode('utf-8')).hexdigest()


class ChunkedUploader:
    """
    Uploads files in sequential chunks.

    Every chunk gets exactly one retry on a transient failure; a second
    failure aborts the upload. Once all chunks are accepted a single
    create call finalizes the file, and its response is returned as the
    file's metadata without reading it back.
    """

    def __init__(self, api: DriveAPI, pacer: Pacer, lister: DirectoryLister,
                 chunk_size: int, channel_id: int = 0, user_id: int = 0,
                 encrypt: bool = False, random_chunk_name: bool = False,
                 encoder: Optional[PartEncoder] = None):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.api = api
        self.pacer = pacer
        self.lister = lister
        self.chunk_size = chunk_size
        self.channel_id = channel_id
        self.user_id = user_id
        self.encrypt = encrypt
        self.random_chunk_name = random_chunk_name
        self.encoder = encoder or IdentityEncoder()

    def upload(self, stream: BinaryIO, src: SourceInfo) -> RemoteEntry:
        """
        Upload a stream to src.remote.

        Args:
            stream: Readable binary stream positioned at the start of the data
            src: Destination path, size hint (-1 if unknown) and modification time

        Returns:
            Metadata of the created file as reported by the server

        Raises:
            DirectoryNotFoundError: If the destination directory does not exist
            UploadError: If a chunk or the finalize call fails
        """
        parent, file_name = split_path(normalize_path(src.remote))
        if not file_name:
            raise ValueError("upload destination must name a file")

        folder_id = self.lister.resolve_dir(parent)
        session = self.open_session(file_name, folder_id, src)

        if src.size != 0:
            self.upload_parts(session, stream, src.size)

        return self.create_file(session, src)

    def open_session(self, file_name: str, folder_id: str, src: SourceInfo) -> UploadSession:
        if src.size < 0:
            total_chunks = -1
        else:
            total_chunks = math.ceil(src.size / self.chunk_size)

        session = UploadSession(
            file_name=file_name,
            folder_id=folder_id,
            upload_id=make_upload_id(src, self.user_id),
            channel_id=self.channel_id,
            chunk_size=self.chunk_size,
            total_chunks_planned=total_chunks,
            encrypt=self.encrypt
        )
        logger.debug(f"Opened upload session {session.upload_id} for {file_name} "
                     f"({total_chunks} chunks planned)")
        return session

    def _part_name(self, session: UploadSession, part_no: int) -> str:
        if self.random_chunk_name:
            return secrets.token_hex(16)
        if session.total_chunks_planned == 1:
            return session.file_name
        return f"{session.file_name}.part.{part_no:03d}"

    def upload_parts(self, session: UploadSession, stream: BinaryIO, size: int) -> None:
        """
        Send the stream as sequential chunks.

        Raises:
            UploadError: If a chunk fails twice, fails permanently, or the
                stream holds less data than announced
        """
        part_no = 0
        while session.total_chunks_planned < 0 or part_no < session.total_chunks_planned:
            data = read_chunk(stream, session.chunk_size)
            if not data:
                break
            part_no += 1
            self._send_part(session, part_no, data)
            session.parts_uploaded += 1
            session.bytes_uploaded += len(data)

        if size >= 0 and session.bytes_uploaded != size:
            raise UploadError(
                f"Source for {session.file_name} ended after {session.bytes_uploaded} "
                f"of {size} bytes"
            )

    def _send_part(self, session: UploadSession, part_no: int, data: bytes) -> None:
        if session.encrypt:
            data = self.encoder.encode(part_no, data)

        params = {
            "partName": self._part_name(session, part_no),
            "partNo": part_no,
            "fileName": session.file_name,
            "channelId": session.channel_id,
            "encrypted": "true" if session.encrypt else "false"
        }

        try:
            self.pacer.call(
                lambda: self.api.upload_part(session.upload_id, data, params),
                attempts=CHUNK_ATTEMPTS
            )
        except DriveAPIError as e:
            logger.error(f"Chunk {part_no} of {session.file_name} failed, aborting upload: {e}")
            raise UploadError(f"Upload of {session.file_name} aborted at chunk {part_no}: {e}") from e

        logger.debug(f"Uploaded chunk {part_no} of {session.file_name} ({len(data)} bytes)")

    def create_file(self, session: UploadSession, src: SourceInfo) -> RemoteEntry:
        """
        Finalize an upload session into a file.

        Returns:
            The server's metadata for the new file

        Raises:
            UploadError: If the call fails or the response is not a file item
        """
        size = session.bytes_uploaded if src.size < 0 else src.size
        mime_type = src.mime_type or mimetypes.guess_type(session.file_name)[0] or 'application/octet-stream'
        body = {
            "name": session.file_name,
            "type": "file",
            "parentId": session.folder_id,
            "mimeType": mime_type,
            "size": size,
            "uploadId": session.upload_id,
            "channelId": session.channel_id,
            "encrypted": session.encrypt,
            "updatedAt": format_timestamp(src.mod_time)
        }

        try:
            data = self.pacer.call(lambda: self.api.create_file(body), attempts=1)
            entry = RemoteEntry.from_dict(data)
        except DriveAPIError as e:
            logger.error(f"Finalize of {session.file_name} failed: {e}")
            raise UploadError(f"Failed to create {session.file_name}: {e}") from e
        except (ValueError, TypeError) as e:
            raise UploadError(f"Malformed create response for {session.file_name}: {e}") from e

        logger.info(f"Uploaded {session.file_name} as {entry.id} "
                    f"({session.parts_uploaded} chunks, {entry.size} bytes)")
        return entry
