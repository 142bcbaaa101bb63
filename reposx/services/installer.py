"""
Install a package from the index into the local store.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from reposx.core.config import ReposxConfig
from reposx.domain.arch import resolve_family
from reposx.domain.errors import (
    ExtractionError,
    MissingArchitectureUrlError,
    PackageNotFoundError,
)
from reposx.domain.models import InstallReport, PackageIndex
from reposx.services.archive import extract_tar_gz
from reposx.services.downloader import Downloader
from reposx.storage.local_store import LocalStore, ensure_dir

logger = logging.getLogger(__name__)

# Receives one human-readable line per install step.
ProgressCallback = Callable[[str], None]


class Installer:
    """
    Resolves a package name to the URL for this host, downloads the archive
    next to the installed packages and unpacks it into <ROOT>/<name>/.

    There is no rollback: a failure after the package directory exists leaves
    it partially populated.
    """

    def __init__(
        self,
        config: ReposxConfig,
        store: Optional[LocalStore] = None,
        downloader: Optional[Downloader] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        self.config = config
        self.store = store or LocalStore(config)
        self.downloader = downloader or Downloader(timeout=config.timeout_seconds)
        self.progress = progress

    def _report(self, message: str) -> None:
        logger.info(message)
        if self.progress is not None:
            self.progress(message)

    def resolve_url(self, name: str, index: PackageIndex) -> str:
        entry = index.find(name)
        if entry is None:
            raise PackageNotFoundError(name)

        family = resolve_family(self.config.arch)
        url = entry.url_for(family)
        if not url:
            raise MissingArchitectureUrlError(name, family.value)
        logger.debug(f"Resolved {name} for {family.value}: {url}")
        return url

    async def install(self, name: str, index: PackageIndex) -> InstallReport:
        """
        Install ``name``. Resolution errors are raised before any network
        access or directory creation.
        """
        url = self.resolve_url(name, index)

        archive_path = self.store.archive_path(name)
        self._report(f"downloading {url}")
        try:
            await self.downloader.download(url, archive_path)

            dest_dir = ensure_dir(self.store.package_dir(name))
            self._report(f"extracting {archive_path}")
            entries = extract_tar_gz(archive_path, dest_dir)
        except BaseException:
            try:
                archive_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to remove {archive_path}: {e}")
            raise

        try:
            archive_path.unlink(missing_ok=True)
        except OSError as e:
            raise ExtractionError(f"cannot remove {archive_path}: {e}") from e

        for skipped in (e for e in entries if e.skipped):
            self._report(f"skipped {skipped.name}: {skipped.reason}")

        return InstallReport(
            package=name,
            url=url,
            destination=str(dest_dir),
            entries=entries,
        )
