"""
On-demand population of the path cache.

Directory listings are fetched lazily, one level at a time. A request for a
path walks up to the nearest cached ancestor, then descends toward the target
listing only the directories on the way; sibling subtrees are never touched,
so remote calls grow with the depth of the target and not with the size of
the tree.
"""

import logging
import math

from .cache import PathCache
from .errors import InvariantViolation, NotFoundError
from .models import Entry, find_child
from .paths import ROOT_PATH, ancestors, join_path, normalize_path, split_segments
from .remote_client import RemoteTreeClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class Populator:
    """
    Resolves directory paths to their child listings, filling the PathCache.

    There is no single-flight: two concurrent resolves of the same uncached
    path both fetch from the remote. Inserts are atomic per key, so both
    converge on equivalent listings.
    """

    def __init__(
        self,
        client: RemoteTreeClient,
        cache: PathCache,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Args:
            client: Remote tree client used for listings.
            cache: Shared path cache to read and fill.
            page_size: Number of children requested per page.
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._client = client
        self._cache = cache
        self.page_size = page_size

    async def resolve(self, target_path: str) -> list[Entry]:
        """
        Return the full child listing of a directory, populating on miss.

        Args:
            target_path: Directory path, e.g. "/docs/reports".

        Returns:
            The directory's children in remote order.

        Raises:
            NotFoundError: If a segment of the path does not exist or is a file.
            DriveError: If a remote fetch fails; levels populated before the
                failure stay cached.
            InvariantViolation: If a listing holds entries of another directory.
        """
        target_path = normalize_path(target_path)

        cached = self._cache.get(target_path)
        if cached is not None:
            return cached

        start, start_path = self._find_start(target_path)
        logger.debug("Populating %s starting from %s", target_path, start_path)

        remaining = split_segments(target_path)[len(split_segments(start_path)) :]
        node, node_path = start, start_path

        # One remote listing per level
        while True:
            children = await self.fetch_children(node)
            for entry in children:
                if entry.parent_id != node.id:
                    raise InvariantViolation(
                        f"Listing of {node_path} ({node.id}) contains {entry.name} "
                        f"with parent {entry.parent_id}"
                    )
            self._cache.put(node_path, children)

            if not remaining:
                return children

            name = remaining.pop(0)
            child = find_child(children, name)
            if child is None or not child.is_dir:
                logger.debug("Path segment not found: %s in %s", name, node_path)
                raise NotFoundError(f"No such directory: {join_path(node_path, name)}")

            node, node_path = child, join_path(node_path, name)

    def _find_start(self, target_path: str) -> tuple[Entry, str]:
        """
        Walk up from the target to the nearest cached ancestor.

        Returns:
            (start Entry, its canonical path). The start Entry is the child of
            the cached ancestor leading toward the target, or the synthetic
            root when nothing on the way is cached.
        """
        if target_path == ROOT_PATH:
            return Entry.root(), ROOT_PATH

        for ancestor in ancestors(target_path):
            listing = self._cache.get(ancestor)
            if listing is None:
                continue

            depth = len(split_segments(ancestor))
            name = split_segments(target_path)[depth]
            child = find_child(listing, name)
            if child is None or not child.is_dir:
                logger.debug("Cached listing of %s has no directory %s", ancestor, name)
                raise NotFoundError(f"No such directory: {join_path(ancestor, name)}")
            return child, join_path(ancestor, name)

        # Cold start: nothing cached between the target and the root
        return Entry.root(), ROOT_PATH

    async def fetch_children(self, directory: Entry) -> list[Entry]:
        """
        Fetch every child of a directory, page by page.

        Pages are accumulated locally; nothing is visible until the caller
        inserts the full list. Any page failure propagates and discards the
        pages already fetched.
        """
        children: list[Entry] = []
        page = 1
        last_page = None

        while True:
            entries, total = await self._client.list_children(directory.id, page, self.page_size)
            children.extend(entries)

            if last_page is None:
                # Total from the first page drives termination
                last_page = max(1, math.ceil(total / self.page_size))

            if len(entries) < self.page_size or page >= last_page:
                break
            page += 1

        logger.debug(
            "Fetched %d children of %s (%s) in %d page(s)",
            len(children),
            directory.name,
            directory.id,
            page,
        )
        return children
