"""
The per-user store: cached index, transient archives and one directory per
installed package, all under a single root (default ~/.local/reposx).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from reposx.core.config import INDEX_FILENAME, ReposxConfig, default_root_dir
from reposx.domain.errors import StoreError
from reposx.domain.models import IndexStatus

logger = logging.getLogger(__name__)

STATUS_FILENAME = "index_status.json"
ARCHIVE_SUFFIX = ".tar.gz"
DIR_MODE = 0o755


def ensure_dir(path: Path) -> Path:
    """Create ``path`` and any missing parents. Safe to call repeatedly."""
    try:
        path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise StoreError(f"cannot create directory {path}: {e}") from e
    return path


class LocalStore:
    """Filesystem layout of the store root."""

    def __init__(self, config: ReposxConfig):
        self.config = config
        self._root: Optional[Path] = None

    def root(self) -> Path:
        """
        Return the store root, creating it on first use.

        Failing to resolve the home directory or to create the root raises
        StoreError.
        """
        if self._root is None:
            if self.config.root_dir is not None:
                root = Path(self.config.root_dir).expanduser()
            else:
                try:
                    root = default_root_dir()
                except (RuntimeError, KeyError) as e:
                    raise StoreError(f"cannot resolve home directory: {e}") from e
            ensure_dir(root)
            logger.debug(f"Store root: {root}")
            self._root = root
        return self._root

    @property
    def index_path(self) -> Path:
        return self.root() / INDEX_FILENAME

    @property
    def status_path(self) -> Path:
        return self.root() / STATUS_FILENAME

    def archive_path(self, package: str) -> Path:
        # Same name for every process: concurrent installs of one package collide here.
        return self.root() / f"{package}{ARCHIVE_SUFFIX}"

    def package_dir(self, package: str) -> Path:
        return self.root() / package

    def list_package_dirs(self) -> List[Path]:
        """
        Installed package directories, in the order the filesystem lists them.
        Files in the root (index, status, archives) are ignored.
        """
        root = self.root()
        try:
            return [entry for entry in root.iterdir() if entry.is_dir()]
        except OSError as e:
            raise StoreError(f"cannot list {root}: {e}") from e

    def package_paths(self) -> str:
        """``:``-joined package directories, ready for a PATH-like variable."""
        return ":".join(str(path) for path in self.list_package_dirs())

    # ------------------------------------------------------------------
    # Index status
    # ------------------------------------------------------------------

    def read_status(self) -> IndexStatus:
        path = self.status_path
        if not path.exists():
            return IndexStatus()
        try:
            return IndexStatus(**json.loads(path.read_text(encoding="utf-8")))
        except Exception as e:
            logger.warning(f"Ignoring unreadable index status {path}: {e}")
            return IndexStatus()

    def write_status(self, status: IndexStatus) -> None:
        try:
            self.status_path.write_text(
                status.model_dump_json(indent=2, exclude_none=True),
                encoding="utf-8",
            )
        except OSError as e:
            raise StoreError(f"cannot write {self.status_path}: {e}") from e
