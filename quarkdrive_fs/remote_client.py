"""
Remote tree client protocol definition.

Defines the interface the Populator and read handles consume, so the cache
layer works against any paginated tree store (the Quark client, or an
in-memory fake in tests).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import Entry


@runtime_checkable
class RemoteTreeClient(Protocol):
    """Protocol defining the remote drive client interface."""

    async def list_children(
        self, parent_id: str, page: int, page_size: int
    ) -> tuple[list[Entry], int]:
        """List one page of a directory's children.

        Args:
            parent_id: Remote id of the directory.
            page: 1-based page index.
            page_size: Maximum number of entries per page.

        Returns:
            (entries on this page in remote order, total child count)

        Raises:
            NotFoundError: If parent_id does not exist.
        """
        ...

    async def get_download_url(self, file_id: str) -> str:
        """Issue a short-lived signed download URL for a file.

        Raises:
            NotFoundError: If the id does not exist.
            DriveError: On any other remote failure.
        """
        ...

    async def read_range(self, url: str, offset: int, length: int) -> bytes:
        """Fetch `length` bytes starting at `offset` from a download URL."""
        ...
