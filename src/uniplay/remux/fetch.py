"""Source fetching for the remux pipeline.

HTTP(S) sources are fetched with httpx; local paths and file:// URLs are
read from disk. Ranged fetches fall back to the full body when the
server does not answer with 206 Partial Content.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import unquote, urlsplit

import httpx

from uniplay.exceptions import RemuxFetchError

logger = logging.getLogger(__name__)

PARTIAL_CONTENT = 206


def _local_path(url: str) -> Path | None:
    """Return the filesystem path for a local source, or None for remote URLs."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme == "file":
        return Path(unquote(parts.path))
    # Single-letter schemes are Windows drive letters
    if parts.scheme == "" or len(parts.scheme) == 1:
        return Path(url)
    return None


class SourceFetcher:
    """Fetches remux source bytes.

    Args:
        client: Optional pre-configured client (tests inject one backed by
            httpx.MockTransport). When omitted a client is created lazily
            and owned by this fetcher.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self, client: httpx.AsyncClient | None = None, timeout: float = 60.0
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> SourceFetcher:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def fetch(self, url: str) -> bytes:
        """Fetch an entire source.

        Raises:
            RemuxFetchError: On network errors or non-2xx responses.
        """
        local = _local_path(url)
        if local is not None:
            return await self._read_local(local)

        response = await self._get(url)
        return response.content

    async def fetch_prefix(self, url: str, max_bytes: int) -> bytes:
        """Fetch at most the first max_bytes of a source.

        If the server ignores the Range header (any status other than 206)
        the full body it returned is used instead.

        Raises:
            RemuxFetchError: On network errors or non-2xx responses.
        """
        local = _local_path(url)
        if local is not None:
            return await asyncio.to_thread(self._read_local_prefix, local, max_bytes)

        response = await self._get(url, headers={"Range": f"bytes=0-{max_bytes - 1}"})
        if response.status_code == PARTIAL_CONTENT:
            return response.content
        logger.debug(
            "Range request not honoured for %s (status %d), using full body",
            url,
            response.status_code,
        )
        return response.content

    async def _get(
        self, url: str, headers: dict[str, str] | None = None
    ) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RemuxFetchError(f"Timed out fetching {url}: {e}") from e
        except httpx.HTTPStatusError as e:
            raise RemuxFetchError(
                f"Failed to fetch {url}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemuxFetchError(f"Failed to fetch {url}: {e}") from e
        return response

    async def _read_local(self, path: Path) -> bytes:
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise RemuxFetchError(f"Cannot read {path}: {e}") from e

    @staticmethod
    def _read_local_prefix(path: Path, max_bytes: int) -> bytes:
        try:
            with path.open("rb") as fh:
                return fh.read(max_bytes)
        except OSError as e:
            raise RemuxFetchError(f"Cannot read {path}: {e}") from e
