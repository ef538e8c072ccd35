"""
Download URL freshness for open read handles.

The remote issues signed download URLs that expire a few minutes after they
are issued. The expiry is embedded in the URL as an absolute Unix timestamp
in the "Expires" query parameter. A URL is renewed when it expires within the
freshness margin, so a read never starts on a URL about to go stale.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import replace
from urllib.parse import parse_qsl, urlsplit

from .errors import NotFoundError
from .models import Entry
from .remote_client import RemoteTreeClient

logger = logging.getLogger(__name__)

EXPIRES_PARAM = "Expires"
FRESHNESS_MARGIN_SECONDS = 60


def parse_url_expiry(url: str) -> int | None:
    """
    Extract the embedded expiry timestamp of a signed URL.

    Returns:
        Unix timestamp in seconds, or None if the parameter is missing or
        not an integer.

    Raises:
        ValueError: If the URL is malformed (no scheme or host).
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Malformed download URL: {url!r}")

    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == EXPIRES_PARAM:
            try:
                return int(value)
            except ValueError:
                return None
    return None


def is_url_expired(
    url: str,
    now: float | None = None,
    margin: float = FRESHNESS_MARGIN_SECONDS,
) -> bool:
    """
    Decide whether a download URL must be renewed.

    A URL is expired when its embedded expiry is less than `margin` seconds
    ahead of `now`. A well-formed URL without an expiry never expires; a
    malformed URL is always expired.
    """
    try:
        expires = parse_url_expiry(url)
    except ValueError:
        return True
    if expires is None:
        return False
    if now is None:
        now = time.time()
    return expires - now < margin


class UrlFreshnessTracker:
    """
    Keeps one read handle's download URL usable.

    The tracker owns its own copy of the Entry. Renewed URLs are written to
    that copy only; the PathCache listing is left untouched.
    """

    def __init__(
        self,
        entry: Entry,
        client: RemoteTreeClient,
        margin: float = FRESHNESS_MARGIN_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._entry = entry
        self._client = client
        self._margin = margin
        self._clock = clock

    @property
    def entry(self) -> Entry:
        return self._entry

    def needs_refresh(self) -> bool:
        url = self._entry.download_url
        if not url:
            return True
        return is_url_expired(url, now=self._clock(), margin=self._margin)

    async def download_url(self) -> str:
        """
        Return a download URL valid for at least the freshness margin.

        Raises:
            NotFoundError: If the remote issued no URL for the file.
        """
        if self.needs_refresh():
            url = await self._client.get_download_url(self._entry.id)
            if not url:
                raise NotFoundError(f"No download URL for {self._entry.name} ({self._entry.id})")
            self._entry = replace(self._entry, download_url=url)
            logger.debug("Renewed download URL for %s (%s)", self._entry.name, self._entry.id)
        return self._entry.download_url
