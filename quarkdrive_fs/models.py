"""
Entry model for nodes of the remote drive tree.

An Entry carries one node's metadata. Children are never stored on the Entry;
they live in the PathCache keyed by the directory's canonical path.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

# Id of the synthetic root directory
ROOT_ID = "0"


@runtime_checkable
class Metadata(Protocol):
    """File metadata capability (size, timestamps, kind)."""

    @property
    def size(self) -> int: ...

    @property
    def modified(self) -> datetime: ...

    @property
    def created(self) -> datetime: ...

    @property
    def is_dir(self) -> bool: ...


@runtime_checkable
class Listable(Protocol):
    """Directory-entry capability: something that has a name in a listing."""

    @property
    def name(self) -> str: ...


def _from_millis(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class Entry:
    """One node (file or directory) of the remote tree."""

    id: str
    name: str
    parent_id: str
    is_dir: bool
    size: int = 0
    created_at: int = 0  # Unix epoch milliseconds
    updated_at: int = 0  # Unix epoch milliseconds
    download_url: str | None = None

    @property
    def modified(self) -> datetime:
        return _from_millis(self.updated_at)

    @property
    def created(self) -> datetime:
        return _from_millis(self.created_at)

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    @classmethod
    def root(cls) -> Entry:
        """Synthetic root directory entry."""
        now = int(time.time() * 1000)
        return cls(
            id=ROOT_ID,
            name="/",
            parent_id="",
            is_dir=True,
            size=0,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Entry:
        """
        Build an Entry from one item of a Quark listing response.

        Args:
            item: Dict with fid, file_name, pdir_fid, dir, size, created_at,
                updated_at (and optionally download_url).

        Raises:
            KeyError: If a required field is missing.
        """
        is_dir = bool(item.get("dir", False))
        return cls(
            id=str(item["fid"]),
            name=item["file_name"],
            parent_id=str(item.get("pdir_fid", "")),
            is_dir=is_dir,
            size=0 if is_dir else int(item.get("size") or 0),
            created_at=int(item.get("created_at") or 0),
            updated_at=int(item.get("updated_at") or 0),
            download_url=item.get("download_url") or None,
        )


def find_child(entries: list[Entry], name: str) -> Entry | None:
    """
    Find a child by name in a directory listing.

    Sibling names are unique on the remote; if that ever breaks, the first
    match in listing order wins.
    """
    for entry in entries:
        if entry.name == name:
            return entry
    return None
