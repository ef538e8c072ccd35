"""
Path-addressed view of the remote drive.

DriveFileSystem is what a file-access protocol server talks to: directory
listings, single-entry lookups, read handles and invalidation. Listings come
from the PathCache and are populated on demand by the Populator.
"""

import io
import logging

from .cache import PathCache
from .errors import NotFoundError
from .invalidation import InvalidationController, InvalidationTrigger
from .models import Entry, find_child
from .paths import ROOT_PATH, basename, normalize_path, parent_path, split_segments
from .populator import DEFAULT_PAGE_SIZE, Populator
from .remote_client import RemoteTreeClient
from .url_freshness import UrlFreshnessTracker

logger = logging.getLogger(__name__)


class DriveFile:
    """
    Read handle for one remote file.

    Holds its own Entry copy through a UrlFreshnessTracker, so a renewed
    download URL stays with this handle.
    """

    def __init__(self, entry: Entry, client: RemoteTreeClient, path: str):
        self.path = path
        self._client = client
        self._tracker = UrlFreshnessTracker(entry, client)
        self._pos = 0

    @property
    def entry(self) -> Entry:
        return self._tracker.entry

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the read position; returns the new absolute position."""
        if whence == io.SEEK_SET:
            pos = offset
        elif whence == io.SEEK_CUR:
            pos = self._pos + offset
        elif whence == io.SEEK_END:
            pos = self.entry.size + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if pos < 0:
            raise ValueError(f"Negative seek position: {pos}")
        self._pos = pos
        return pos

    async def read(self, count: int) -> bytes:
        """
        Read up to `count` bytes at the current position.

        The download URL is checked for freshness before every read.
        """
        size = self.entry.size
        if count <= 0 or self._pos >= size:
            return b""
        count = min(count, size - self._pos)

        url = await self._tracker.download_url()
        data = await self._client.read_range(url, self._pos, count)
        self._pos += len(data)
        logger.debug("Read %d bytes from %s", len(data), self.path)
        return data

    async def read_all(self) -> bytes:
        """Read from the current position to end of file."""
        return await self.read(self.entry.size - self._pos)


class DriveFileSystem:
    """
    Filesystem facade over the remote tree.

    All paths are canonicalized and resolved beneath `root`, the remote
    directory exposed as "/".
    """

    def __init__(
        self,
        client: RemoteTreeClient,
        cache: PathCache | None = None,
        root: str = ROOT_PATH,
        page_size: int = DEFAULT_PAGE_SIZE,
        triggers: list[InvalidationTrigger] | None = None,
    ):
        """
        Args:
            client: Remote tree client.
            cache: Path cache; a default-sized one is created if omitted.
            root: Remote directory to expose as "/".
            page_size: Listing page size.
            triggers: Full-invalidation triggers (timer, signal).
        """
        self.client = client
        self.cache = cache if cache is not None else PathCache()
        self.root = normalize_path(root)
        self.populator = Populator(client, self.cache, page_size=page_size)
        self.invalidation = InvalidationController(self.cache, triggers or [])

    def _to_remote(self, path: str) -> str:
        """Map a client path to the remote canonical path under root."""
        path = normalize_path(path)
        if self.root == ROOT_PATH:
            return path
        if path == ROOT_PATH:
            return self.root
        return self.root + path

    async def start(self) -> None:
        await self.invalidation.start()

    async def stop(self) -> None:
        await self.invalidation.stop()

    async def resolve_or_populate(self, path: str) -> list[Entry] | None:
        """
        Return a directory's children, populating the cache on miss.

        Returns:
            The listing, or None if the directory does not exist.
        """
        return await self._resolve_remote(self._to_remote(path))

    async def read_dir(self, path: str) -> list[Entry]:
        """
        List a directory.

        Raises:
            NotFoundError: If the directory does not exist.
        """
        logger.debug("fs: read_dir %s", path)
        listing = await self.resolve_or_populate(path)
        if listing is None:
            raise NotFoundError(f"No such directory: {path}")
        return listing

    async def get_entry(self, path: str) -> Entry | None:
        """
        Look up one entry by path via its parent's listing.

        Returns:
            The Entry, or None if it does not exist.
        """
        remote_path = self._to_remote(path)
        if remote_path == self.root and self.root == ROOT_PATH:
            return Entry.root()

        parent = parent_path(remote_path)
        listing = await self._resolve_remote(parent)
        if listing is None:
            return None
        return find_child(listing, basename(remote_path))

    async def _resolve_remote(self, remote_dir: str) -> list[Entry] | None:
        try:
            return await self.populator.resolve(remote_dir)
        except NotFoundError:
            return None

    async def metadata(self, path: str) -> Entry:
        """
        Raises:
            NotFoundError: If the path does not exist.
        """
        logger.debug("fs: metadata %s", path)
        entry = await self.get_entry(path)
        if entry is None:
            raise NotFoundError(f"No such file or directory: {path}")
        return entry

    async def open(self, path: str) -> DriveFile:
        """
        Open a file for reading.

        Raises:
            NotFoundError: If the path does not exist.
            IsADirectoryError: If the path is a directory.
        """
        logger.debug("fs: open %s", path)
        entry = await self.metadata(path)
        if entry.is_dir:
            raise IsADirectoryError(f"Is a directory: {path}")
        return DriveFile(entry, self.client, normalize_path(path))

    def invalidate(self, path: str) -> None:
        self.invalidation.invalidate(self._to_remote(path))

    def invalidate_parent(self, path: str) -> None:
        # Parent of the mount root lies outside the exposed tree
        if split_segments(path):
            self.invalidation.invalidate_parent(self._to_remote(path))

    def invalidate_all(self) -> None:
        self.invalidation.invalidate_all()
