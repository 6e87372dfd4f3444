"""
Directory listing over the cursor-paginated /files endpoint.
"""
from typing import List, Optional

from loguru import logger

from ..clients.drive_api import DriveAPI, DriveAPIError
from ..clients.pacer import Pacer
from ..models.data_models import ListPage, RemoteEntry
from .dir_cache import DirCache, join_path, normalize_path


class DirectoryLister:
    """
    Lists remote folders page by page.

    The server's page counters (meta.count, meta.totalPages) are unreliable,
    so the end of a listing is detected only by a page shorter than the
    requested size, or by running out of cursors. The next cursor is the id
    of the last item on the current page, which is why pages are requested
    sorted ascending by id.
    """

    def __init__(self, api: DriveAPI, pacer: Pacer, dir_cache: DirCache, page_size: int = 500):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.api = api
        self.pacer = pacer
        self.dir_cache = dir_cache
        self.page_size = page_size

    def _fetch_page(self, folder_id: str, cursor: str, page: int) -> ListPage:
        data = self.pacer.call(
            lambda: self.api.list_files(folder_id, self.page_size, cursor=cursor, page=page),
            attempts=1
        )
        try:
            return ListPage.from_dict(data)
        except (ValueError, TypeError) as e:
            raise DriveAPIError(f"Drive API returned a malformed list page for {folder_id}: {e}") from e

    def list_folder(self, folder_id: str) -> List[RemoteEntry]:
        """
        List every entry of a folder.

        Args:
            folder_id: Remote folder identifier

        Returns:
            Entries in ascending id order

        Raises:
            DriveAPIError: If any page request fails. Pages are not retried and
                nothing is returned in that case
        """
        entries: List[RemoteEntry] = []
        cursor = ''
        page = 1

        while True:
            list_page = self._fetch_page(folder_id, cursor, page)
            entries.extend(list_page.items)
            logger.debug(f"Fetched page {page} of {folder_id}: {len(list_page.items)} items "
                         f"(server reports {list_page.meta.count} total)")

            if len(list_page.items) < self.page_size:
                break

            next_cursor = list_page.next_cursor
            if next_cursor is None or next_cursor == cursor:
                logger.warning(f"No usable cursor after page {page} of {folder_id}, stopping")
                break

            cursor = next_cursor
            page += 1

        logger.debug(f"Listed {len(entries)} entries of {folder_id} in {page} requests")
        return entries

    def find_entry(self, parent_id: str, name: str) -> Optional[RemoteEntry]:
        """Find a direct child of a folder by name."""
        for entry in self.list_folder(parent_id):
            if entry.name == name:
                return entry
        return None

    def find_folder(self, parent_id: str, name: str) -> Optional[str]:
        """Find a child folder id by name; used to fill directory cache misses."""
        entry = self.find_entry(parent_id, name)
        if entry is None or not entry.is_dir:
            return None
        return entry.id

    def resolve_dir(self, path: str) -> str:
        """
        Resolve a directory path to a folder id through the directory cache.

        Raises:
            DirectoryNotFoundError: If the path does not exist
        """
        return self.dir_cache.find_dir(path, self.find_folder)

    def list(self, path: str) -> List[RemoteEntry]:
        """
        List a directory by path.

        Child folders discovered by the listing are added to the directory cache.

        Raises:
            DirectoryNotFoundError: If the path does not exist
            DriveAPIError: If the listing fails
        """
        path = normalize_path(path)
        folder_id = self.resolve_dir(path)
        entries = self.list_folder(folder_id)

        for entry in entries:
            if entry.is_dir:
                self.dir_cache.put(join_path(path, entry.name), entry.id)

        logger.info(f"Listed '{path or '/'}': {len(entries)} entries")
        return entries
