"""
Quark cloud drive client.

Implements the RemoteTreeClient protocol over the Quark web API using a
requests.Session. The blocking HTTP calls run in worker threads through
asyncio.to_thread, so callers on the event loop only ever await.

Retry and backoff for transient failures live here, below the cache layer.
"""

import asyncio
import logging
import threading
import time

import requests

from .config import ConnectionConfig, DriveConfig
from .errors import (
    ForbiddenError,
    NotFoundError,
    PermanentFetchError,
    TransientFetchError,
)
from .models import Entry

logger = logging.getLogger(__name__)

ORIGIN = "https://pan.quark.cn"
REFERER = "https://pan.quark.cn/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) quark-cloud-drive/2.5.20 Chrome/100.0.4896.160 "
    "Electron/18.3.5.4-b478491100 Safari/537.36 Channel/pckk_other_ch"
)

LIST_PATH = "/1/clouddrive/file/sort"
DOWNLOAD_PATH = "/1/clouddrive/file/download"
COMMON_PARAMS = {"pr": "ucpro", "fr": "pc"}
LIST_SORT = "file_type:asc,updated_at:desc"

# Status codes worth retrying
RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class QuarkDriveClient:
    """
    Quark drive client implementing the RemoteTreeClient interface.
    """

    def __init__(self, drive_config: DriveConfig, conn_config: ConnectionConfig):
        self.drive_config = drive_config
        self.conn_config = conn_config
        self._session: requests.Session | None = None
        self._lock = threading.Lock()

    def connect(self) -> None:
        """Build the HTTP session with the drive's auth headers."""
        with self._lock:
            if not self.drive_config.cookie:
                raise ValueError("A Quark cookie is required")
            session = requests.Session()
            session.headers.update(
                {
                    "Origin": ORIGIN,
                    "Referer": REFERER,
                    "Cookie": self.drive_config.cookie,
                    "User-Agent": USER_AGENT,
                }
            )
            self._session = session
            logger.info("Quark drive session ready (%s)", self.drive_config.api_base_url)

    def disconnect(self) -> None:
        """Close the HTTP session."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
                logger.debug("Quark drive session closed")

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self.connect()
        return self._session

    def _timeout(self) -> tuple[int, int]:
        return (self.conn_config.connect_timeout_seconds, self.conn_config.timeout_seconds)

    def _with_retry(self, operation: str, func, *args, **kwargs):
        """
        Execute an HTTP call with retry and exponential backoff.

        `func` must return a requests.Response. 404 maps to NotFoundError and
        401/403 to ForbiddenError immediately; 408, 429 and 5xx responses and
        connection errors are retried; any other 4xx raises
        PermanentFetchError.
        """
        last_exception = None

        for attempt in range(self.conn_config.retry_attempts):
            try:
                response = func(*args, **kwargs)
            except requests.RequestException as e:
                last_exception = e
                logger.warning(
                    "%s failed (attempt %d/%d): %s",
                    operation,
                    attempt + 1,
                    self.conn_config.retry_attempts,
                    e,
                )
            else:
                status = response.status_code
                if status < 400:
                    return response
                if status == 404:
                    raise NotFoundError(f"Not found: {operation}")
                if status in (401, 403):
                    raise ForbiddenError(f"Access denied: {operation}")
                if status not in RETRYABLE_STATUS:
                    raise PermanentFetchError(f"{operation} failed: HTTP {status} {response.text[:200]}")

                last_exception = PermanentFetchError(f"HTTP {status}")
                logger.warning(
                    "%s failed (attempt %d/%d): HTTP %d",
                    operation,
                    attempt + 1,
                    self.conn_config.retry_attempts,
                    status,
                )

            if attempt < self.conn_config.retry_attempts - 1:
                delay = (2**attempt) * self.conn_config.retry_delay_seconds
                time.sleep(delay)

        logger.error("%s failed after %d attempts", operation, self.conn_config.retry_attempts)
        raise TransientFetchError(f"{operation} failed: {last_exception}") from last_exception

    def _json(self, operation: str, response: requests.Response) -> dict:
        """Decode an API response body and check its status code."""
        try:
            body = response.json()
        except ValueError as e:
            raise PermanentFetchError(f"{operation}: malformed JSON response") from e
        if not isinstance(body, dict):
            raise PermanentFetchError(f"{operation}: unexpected response type {type(body).__name__}")
        code = body.get("code", 0)
        if code not in (0, None):
            raise PermanentFetchError(f"{operation}: API error {code} {body.get('message', '')}")
        return body

    def _list_children_sync(self, parent_id: str, page: int, page_size: int) -> tuple[list[Entry], int]:
        operation = f"list_children({parent_id}, page={page})"
        logger.debug("Listing %s page %d (size %d)", parent_id, page, page_size)

        params = dict(COMMON_PARAMS)
        params.update(
            {
                "pdir_fid": parent_id,
                "_page": page,
                "_size": page_size,
                "_fetch_total": 1,
                "_fetch_sub_dirs": 0,
                "_sort": LIST_SORT,
            }
        )
        response = self._with_retry(
            operation,
            self.session.get,
            self.drive_config.api_base_url + LIST_PATH,
            params=params,
            timeout=self._timeout(),
        )
        body = self._json(operation, response)

        try:
            items = (body.get("data") or {}).get("list") or []
            total = int((body.get("metadata") or {}).get("_total", len(items)))
            entries = [Entry.from_api(item) for item in items]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PermanentFetchError(f"{operation}: malformed listing: {e}") from e
        return entries, total

    def _get_download_urls_sync(self, file_ids: list[str]) -> dict[str, str]:
        operation = f"get_download_urls({', '.join(file_ids)})"
        logger.debug("Requesting download URLs for %s", file_ids)

        response = self._with_retry(
            operation,
            self.session.post,
            self.drive_config.api_base_url + DOWNLOAD_PATH,
            params=COMMON_PARAMS,
            json={"fids": file_ids},
            timeout=self._timeout(),
        )
        body = self._json(operation, response)

        try:
            return {str(item["fid"]): item["download_url"] for item in body.get("data") or []}
        except (KeyError, TypeError) as e:
            raise PermanentFetchError(f"{operation}: malformed response: {e}") from e

    def _read_range_sync(self, url: str, offset: int, length: int) -> bytes:
        end = offset + length - 1
        logger.debug("Downloading bytes %d-%d", offset, end)
        response = self._with_retry(
            f"read_range({offset}-{end})",
            self.session.get,
            url,
            headers={"Range": f"bytes={offset}-{end}"},
            timeout=self._timeout(),
        )
        return response.content

    async def list_children(self, parent_id: str, page: int, page_size: int) -> tuple[list[Entry], int]:
        return await asyncio.to_thread(self._list_children_sync, parent_id, page, page_size)

    async def get_download_urls(self, file_ids: list[str]) -> dict[str, str]:
        return await asyncio.to_thread(self._get_download_urls_sync, list(file_ids))

    async def get_download_url(self, file_id: str) -> str:
        urls = await self.get_download_urls([file_id])
        url = urls.get(file_id)
        if not url:
            raise NotFoundError(f"No download URL found for {file_id}")
        return url

    async def read_range(self, url: str, offset: int, length: int) -> bytes:
        if length <= 0:
            return b""
        return await asyncio.to_thread(self._read_range_sync, url, offset, length)
