"""
Single-shot HTTP downloads.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import aiofiles
import httpx

from reposx.domain.errors import StoreError, TransportError

logger = logging.getLogger(__name__)


class Downloader:
    """
    Streams one URL to one file. No retry, no resume, no checksum.

    ``transport`` is handed to httpx as-is; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def download(self, url: str, target_path: Path) -> int:
        """
        GET ``url`` and write the body to ``target_path``, replacing any
        existing file. Returns the number of bytes written.

        Any non-2xx status or transport failure raises TransportError and
        leaves no file behind.
        """
        logger.info(f"Downloading {url} -> {target_path}")
        written = 0
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    async with aiofiles.open(target_path, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            await f.write(chunk)
                            written += len(chunk)
        except httpx.HTTPStatusError as e:
            target_path.unlink(missing_ok=True)
            raise TransportError(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            target_path.unlink(missing_ok=True)
            raise TransportError(url, str(e) or type(e).__name__) from e
        except OSError as e:
            target_path.unlink(missing_ok=True)
            raise StoreError(f"cannot write {target_path}: {e}") from e

        logger.debug(f"Downloaded {written} bytes from {url}")
        return written
