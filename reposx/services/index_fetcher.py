"""
Download, cache and parse the reposx package index.

The index is an XML document:

    <packages>
      <package name="foo">
        <amd><url>http://.../foo-amd.tar.gz</url></amd>
        <arm><url>http://.../foo-arm.tar.gz</url></arm>
      </package>
    </packages>
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiofiles

from reposx.core.config import ReposxConfig
from reposx.domain.errors import IndexFormatError, StoreError
from reposx.domain.models import IndexStatus, PackageEntry, PackageIndex
from reposx.services.downloader import Downloader
from reposx.storage.local_store import LocalStore

logger = logging.getLogger(__name__)

ROOT_TAG = "packages"
PACKAGE_TAG = "package"


def _url_text(element: ET.Element, family: str) -> str:
    url = element.find(f"{family}/url")
    if url is None or url.text is None:
        return ""
    return url.text.strip()


def parse_index(text: str) -> PackageIndex:
    """
    Parse an index document. Raises IndexFormatError for malformed XML or a
    root element other than <packages>.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise IndexFormatError(f"malformed index document: {e}") from e

    if root.tag != ROOT_TAG:
        raise IndexFormatError(f"expected <{ROOT_TAG}> root element, got <{root.tag}>")

    packages = []
    for element in root.findall(PACKAGE_TAG):
        packages.append(
            PackageEntry(
                name=element.get("name", ""),
                amd_url=_url_text(element, "amd"),
                arm_url=_url_text(element, "arm"),
            )
        )
    return PackageIndex(packages=packages)


class IndexFetcher:
    """Cache-or-refresh access to the index stored at <ROOT>/index.xml."""

    def __init__(
        self,
        config: ReposxConfig,
        store: Optional[LocalStore] = None,
        downloader: Optional[Downloader] = None,
    ):
        self.config = config
        self.store = store or LocalStore(config)
        self.downloader = downloader or Downloader(timeout=config.timeout_seconds)

    async def _read_cached(self, path: Path) -> PackageIndex:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                text = await f.read()
        except OSError as e:
            raise StoreError(f"cannot read {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise IndexFormatError(f"index {path} is not valid UTF-8: {e}") from e
        return parse_index(text)

    async def refresh(self) -> Path:
        """
        Download the index over the cached copy. The body is written to a
        temporary file first so a failed download keeps the previous cache.
        """
        index_path = self.store.index_path
        tmp_path = index_path.with_name(f"{index_path.name}.tmp")
        await self.downloader.download(self.config.index_url, tmp_path)
        try:
            tmp_path.replace(index_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StoreError(f"cannot replace {index_path}: {e}") from e
        return index_path

    async def load_index(self, force: bool = False) -> PackageIndex:
        """
        Return the package index.

        Without ``force`` an existing cache is parsed with no network access.
        With ``force``, or when no cache exists, the index is downloaded once,
        stored in the cache and then parsed.
        """
        index_path = self.store.index_path

        if not force and index_path.exists():
            logger.debug(f"Using cached index {index_path}")
            return await self._read_cached(index_path)

        await self.refresh()
        index = await self._read_cached(index_path)

        self.store.write_status(
            IndexStatus(
                last_pulled=datetime.now(timezone.utc),
                index_path=str(index_path),
                source_url=self.config.index_url,
                package_count=len(index),
            )
        )
        logger.info(f"Index updated: {len(index)} packages from {self.config.index_url}")
        return index
