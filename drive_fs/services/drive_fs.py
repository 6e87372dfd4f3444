"""
Filesystem adapter for the remote drive.
"""
from typing import BinaryIO, List, Optional

from loguru import logger

from ..clients.drive_api import DriveAPI
from ..clients.pacer import Pacer
from ..models.config import DriveConfig
from ..models.data_models import HashKind, RemoteEntry, SourceInfo
from ..models.errors import ObjectNotFoundError, UnsupportedHashError
from ..models.interfaces import ChangeCallback
from .change_notifier import CancelToken, ChangeNotifier, PollIntervalChannel
from .dir_cache import DirCache, normalize_path, split_path
from .drive_object import SUPPORTED_HASH, DriveObject
from .lister import DirectoryLister
from .uploader import ChunkedUploader, PartEncoder


class DriveFs:
    """
    Remote drive exposed as a filesystem.

    Implements the Lister, Uploader, HashProvider and ChangeSource
    capabilities. The pacer and directory cache are shared by every
    operation issued through one instance.
    """

    def __init__(self, config: DriveConfig, api: Optional[DriveAPI] = None,
                 pacer: Optional[Pacer] = None, dir_cache: Optional[DirCache] = None,
                 encoder: Optional[PartEncoder] = None):
        """
        Initialize the adapter.

        Args:
            config: DriveConfig for the remote
            api: HTTP client, built from config when omitted
            pacer: Shared rate limiter, built from config when omitted
            dir_cache: Shared directory cache, rooted at config.root_folder_id when omitted
            encoder: Upload part encoder used when encryption is enabled
        """
        self.config = config
        self.api = api or DriveAPI(config.api_url, access_token=config.access_token,
                                   timeout=config.timeout)
        self.pacer = pacer or Pacer(min_sleep=config.pacer_min_sleep,
                                    max_sleep=config.pacer_max_sleep)
        self.dir_cache = dir_cache or DirCache(config.root_folder_id)

        self.lister = DirectoryLister(self.api, self.pacer, self.dir_cache,
                                      page_size=config.page_size)
        self.uploader = ChunkedUploader(
            self.api,
            self.pacer,
            self.lister,
            chunk_size=config.chunk_size,
            channel_id=config.channel_id,
            user_id=config.user_id,
            encrypt=config.encrypt_files,
            random_chunk_name=config.random_chunk_name,
            encoder=encoder
        )

        logger.info(f"DriveFs initialized for {config.api_url} (root {config.root_folder_id})")

    def list(self, path: str) -> List[RemoteEntry]:
        """List a directory."""
        return self.lister.list(path)

    def new_object(self, remote: str) -> DriveObject:
        """
        Look up an existing file.

        Raises:
            ObjectNotFoundError: If there is no file at remote
            DirectoryNotFoundError: If its directory does not exist
        """
        parent, leaf = split_path(normalize_path(remote))
        folder_id = self.lister.resolve_dir(parent)
        entry = self.lister.find_entry(folder_id, leaf)
        if entry is None or entry.is_dir:
            raise ObjectNotFoundError(f"object not found: {remote}")
        return DriveObject(self.api, self.pacer, remote, entry)

    def put(self, source: BinaryIO, src: SourceInfo) -> DriveObject:
        """
        Upload a new file without checking for an existing one.

        The returned handle is populated from the finalize response, so its
        hash (when the server already reports one) needs no further request.
        """
        entry = self.uploader.upload(source, src)
        return DriveObject(self.api, self.pacer, src.remote, entry)

    def hash(self, remote: str, kind: HashKind) -> str:
        if kind != SUPPORTED_HASH:
            raise UnsupportedHashError(kind)
        return self.new_object(remote).hash(kind)

    def change_notify(self, cancel: CancelToken, on_change: ChangeCallback,
                      poll_interval: PollIntervalChannel) -> ChangeNotifier:
        """
        Subscribe to remote changes in the background.

        Close poll_interval or cancel the token to end the subscription.
        """
        notifier = ChangeNotifier(self.api, self.pacer, self.dir_cache)
        notifier.start(cancel, on_change, poll_interval)
        return notifier

    def close(self) -> None:
        self.api.close()
