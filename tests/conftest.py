"""
Shared pytest fixtures for quarkdrive-fs tests.
"""

import time
from collections.abc import Generator
from pathlib import Path
from urllib.parse import urlsplit

import pytest

from quarkdrive_fs.cache import PathCache
from quarkdrive_fs.config import CacheConfig, ConnectionConfig, DriveConfig, LogConfig
from quarkdrive_fs.errors import NotFoundError
from quarkdrive_fs.models import ROOT_ID, Entry


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemoteTree:
    """
    In-memory RemoteTreeClient.

    Records every remote call so tests can assert which directories were
    listed, how many pages were fetched and how often URLs were issued.
    """

    def __init__(self):
        self.children: dict[str, list[Entry]] = {ROOT_ID: []}
        self.contents: dict[str, bytes] = {}
        self.list_calls: list[tuple[str, int, int]] = []
        self.url_calls: list[str] = []
        self.range_calls: list[tuple[str, int, int]] = []
        self.errors: dict[tuple[str, int], Exception] = {}
        self.total_override: dict[str, int] = {}
        self.url_ttl = 3600
        self.before_page = None  # optional async hook(parent_id, page)

    def add_dir(self, parent_id: str, dir_id: str, name: str) -> Entry:
        entry = Entry(id=dir_id, name=name, parent_id=parent_id, is_dir=True)
        self.children[parent_id].append(entry)
        self.children[dir_id] = []
        return entry

    def add_file(self, parent_id: str, file_id: str, name: str, content: bytes = b"") -> Entry:
        entry = Entry(
            id=file_id,
            name=name,
            parent_id=parent_id,
            is_dir=False,
            size=len(content),
            created_at=1_700_000_000_000,
            updated_at=1_700_000_500_000,
        )
        self.children[parent_id].append(entry)
        self.contents[file_id] = content
        return entry

    def listed_ids(self) -> list[str]:
        return [parent_id for parent_id, _, _ in self.list_calls]

    async def list_children(self, parent_id: str, page: int, page_size: int):
        self.list_calls.append((parent_id, page, page_size))
        if self.before_page is not None:
            await self.before_page(parent_id, page)
        error = self.errors.get((parent_id, page))
        if error is not None:
            raise error
        if parent_id not in self.children:
            raise NotFoundError(f"Not found: {parent_id}")
        items = self.children[parent_id]
        start = (page - 1) * page_size
        total = self.total_override.get(parent_id, len(items))
        return list(items[start : start + page_size]), total

    async def get_download_url(self, file_id: str) -> str:
        self.url_calls.append(file_id)
        if file_id not in self.contents:
            raise NotFoundError(f"Not found: {file_id}")
        expires = int(time.time()) + self.url_ttl
        return f"https://dl.example.com/{file_id}?Expires={expires}&Signature=abc"

    async def read_range(self, url: str, offset: int, length: int) -> bytes:
        self.range_calls.append((url, offset, length))
        file_id = urlsplit(url).path.lstrip("/")
        return self.contents[file_id][offset : offset + length]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_remote() -> FakeRemoteTree:
    """Empty remote tree (root only)."""
    return FakeRemoteTree()


@pytest.fixture
def sample_remote(fake_remote: FakeRemoteTree) -> FakeRemoteTree:
    """
    Remote tree used across tests:

        /
        ├── docs/
        │   ├── reports/
        │   │   ├── q1.csv
        │   │   └── other/
        │   └── notes.txt
        ├── photos/
        │   └── a.jpg
        └── readme.txt
    """
    fake_remote.add_dir(ROOT_ID, "docs", "docs")
    fake_remote.add_dir(ROOT_ID, "photos", "photos")
    fake_remote.add_file(ROOT_ID, "readme", "readme.txt", b"hello drive")
    fake_remote.add_dir("docs", "reports", "reports")
    fake_remote.add_file("docs", "notes", "notes.txt", b"some notes")
    fake_remote.add_file("reports", "q1", "q1.csv", b"quarter,revenue\nq1,100\n")
    fake_remote.add_dir("reports", "other", "other")
    fake_remote.add_file("photos", "a", "a.jpg", b"\xff\xd8\xff")
    return fake_remote


@pytest.fixture
def path_cache(fake_clock: FakeClock) -> PathCache:
    """PathCache on a fake clock with a 600 second TTL."""
    return PathCache(max_entries=100, ttl_seconds=600, timer=fake_clock)


@pytest.fixture
def drive_config() -> DriveConfig:
    return DriveConfig(cookie="kps=abc; sign=def", api_base_url="https://drive.example.com")


@pytest.fixture
def conn_config() -> ConnectionConfig:
    """Connection config with no retry delay for tests."""
    return ConnectionConfig(
        timeout_seconds=30,
        connect_timeout_seconds=10,
        retry_attempts=3,
        retry_delay_seconds=0,
    )


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(max_entries=100, ttl_seconds=600, page_size=50, refresh_interval_seconds=0)


@pytest.fixture
def log_config(tmp_path: Path) -> LogConfig:
    return LogConfig(level="DEBUG", file=str(tmp_path / "test.log"), console=False)


@pytest.fixture
def tmp_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Creates a temporary INI configuration file for config tests.

    Returns:
        Path to the temporary config file.
    """
    config_content = """[drive]
cookie = kps=abc; sign=def
api_base_url = https://drive.example.com
root = /shared

[cache]
max_entries = 250
ttl_seconds = 120
page_size = 25
refresh_interval_seconds = 900

[connection]
timeout_seconds = 45
connect_timeout_seconds = 5
retry_attempts = 5
retry_delay_seconds = 2

[logging]
level = DEBUG
file = test.log
console = false
"""
    config_path = tmp_path / "test_config.ini"
    config_path.write_text(config_content, encoding="utf-8")
    yield config_path


@pytest.fixture
def minimal_config_file(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Creates a minimal INI configuration file with only required fields.
    """
    config_content = """[drive]
cookie = minimal-cookie
"""
    config_path = tmp_path / "minimal_config.ini"
    config_path.write_text(config_content, encoding="utf-8")
    yield config_path
