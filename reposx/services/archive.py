"""
Unpack gzip-compressed tarballs into a package directory.
"""
from __future__ import annotations

import logging
import os
import shutil
import tarfile
import zlib
from pathlib import Path
from typing import List, Optional

from reposx.domain.errors import ExtractionError
from reposx.domain.models import ExtractResult

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
FILE_MODE = 0o755

UNSAFE_PATH_REASON = "path escapes destination"


def _describe_type(member: tarfile.TarInfo) -> str:
    if member.issym():
        return "symlink"
    if member.islnk():
        return "hard link"
    if member.ischr():
        return "character device"
    if member.isblk():
        return "block device"
    if member.isfifo():
        return "fifo"
    return f"type {member.type!r}"


def _resolve_target(dest_root: Path, name: str) -> Optional[Path]:
    """
    Join a member name onto the destination. Returns None for absolute names
    and for names that resolve outside ``dest_root``.
    """
    if os.path.isabs(name):
        return None
    target = (dest_root / name).resolve()
    if target != dest_root and dest_root not in target.parents:
        return None
    return target


def _extract_member(tar: tarfile.TarFile, member: tarfile.TarInfo, dest_root: Path) -> ExtractResult:
    if not (member.isdir() or member.isfile()):
        reason = f"unsupported entry type: {_describe_type(member)}"
        logger.info(f"Skipping {member.name}: {reason}")
        return ExtractResult(name=member.name, status="skipped", reason=reason)

    target = _resolve_target(dest_root, member.name)
    if target is None:
        logger.warning(f"Skipping {member.name}: {UNSAFE_PATH_REASON}")
        return ExtractResult(name=member.name, status="skipped", reason=UNSAFE_PATH_REASON)

    if member.isdir():
        target.mkdir(parents=True, exist_ok=True)
        os.chmod(target, DIR_MODE)
    else:
        target.parent.mkdir(parents=True, exist_ok=True)
        source = tar.extractfile(member)
        if source is None:
            raise ExtractionError(f"cannot read {member.name} from archive")
        with source, open(target, "wb") as out:
            shutil.copyfileobj(source, out)
        os.chmod(target, FILE_MODE)

    logger.debug(f"Extracted {member.name}")
    return ExtractResult(name=member.name, status="extracted")


def extract_tar_gz(archive_path: Path, dest_dir: Path) -> List[ExtractResult]:
    """
    Stream-decompress ``archive_path`` and unpack it into ``dest_dir``.

    Directories are created with mode 0755; regular files are written and
    then marked executable (0755). Links, devices and other entry types are
    skipped, as are entries whose path would land outside ``dest_dir``. Each
    member yields one ExtractResult, in archive order.

    A corrupt archive or a filesystem failure raises ExtractionError; entries
    written before the failure are left in place.
    """
    dest_root = dest_dir.resolve()
    results: List[ExtractResult] = []
    try:
        with tarfile.open(archive_path, mode="r|gz") as tar:
            for member in tar:
                results.append(_extract_member(tar, member, dest_root))
    except ExtractionError:
        raise
    except (tarfile.TarError, EOFError, zlib.error) as e:
        raise ExtractionError(f"corrupt archive {archive_path}: {e}") from e
    except OSError as e:
        raise ExtractionError(f"cannot extract {archive_path}: {e}") from e

    skipped = sum(1 for r in results if r.skipped)
    logger.info(f"Extracted {len(results) - skipped} entries into {dest_dir} ({skipped} skipped)")
    return results
