"""
Thread-safe cache mapping remote directory paths to folder ids.
"""
import threading
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

from ..models.errors import DirectoryNotFoundError


# finder(parent_id, leaf_name) -> folder id, or None when the leaf does not exist
FolderFinder = Callable[[str, str], Optional[str]]


def normalize_path(path: str) -> str:
    """Strip surrounding and duplicate slashes; the root is the empty string."""
    return '/'.join(part for part in path.split('/') if part)


def split_path(path: str) -> Tuple[str, str]:
    """Split a normalized path into (parent, leaf)."""
    parent, _, leaf = path.rpartition('/')
    return parent, leaf


def join_path(parent: str, leaf: str) -> str:
    return f"{parent}/{leaf}" if parent else leaf


class DirCache:
    """
    Maps paths to folder ids. Each path holds at most one id; misses are
    filled lazily by resolving one path component at a time.
    """

    def __init__(self, root_id: str):
        self.root_id = root_id
        self._lock = threading.Lock()
        self._cache: Dict[str, str] = {'': root_id}
        self._inverse: Dict[str, str] = {root_id: ''}

    def get(self, path: str) -> Optional[str]:
        with self._lock:
            return self._cache.get(normalize_path(path))

    def get_inverse(self, folder_id: str) -> Optional[str]:
        """Return the cached path of a folder id, if known."""
        with self._lock:
            return self._inverse.get(folder_id)

    def put(self, path: str, folder_id: str) -> None:
        path = normalize_path(path)
        with self._lock:
            previous = self._cache.get(path)
            if previous is not None and previous != folder_id:
                self._inverse.pop(previous, None)
            self._cache[path] = folder_id
            self._inverse[folder_id] = path

    def flush_dir(self, path: str) -> None:
        """Forget a directory and everything cached below it. The root is kept."""
        path = normalize_path(path)
        prefix = f"{path}/" if path else ''
        with self._lock:
            stale = [p for p in self._cache if p and (p == path or p.startswith(prefix))]
            for p in stale:
                self._inverse.pop(self._cache.pop(p), None)
        if stale:
            logger.debug(f"Flushed {len(stale)} cached directories under '{path}'")

    def find_dir(self, path: str, finder: FolderFinder) -> str:
        """
        Resolve a directory path to its folder id.

        Args:
            path: Directory path relative to the root
            finder: Looks up a child folder by name inside a parent folder

        Returns:
            Folder id

        Raises:
            DirectoryNotFoundError: If a path component does not exist
        """
        path = normalize_path(path)
        folder_id = self.get(path)
        if folder_id is not None:
            return folder_id

        parent, leaf = split_path(path)
        parent_id = self.find_dir(parent, finder)

        logger.debug(f"Directory cache miss for '{path}', looking up '{leaf}' in {parent_id}")
        folder_id = finder(parent_id, leaf)
        if folder_id is None:
            raise DirectoryNotFoundError(f"directory not found: {path}")

        self.put(path, folder_id)
        return folder_id
