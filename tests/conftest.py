"""
Shared test fixtures: a store rooted in tmp_path, a fake package origin
served through httpx.MockTransport, and tarball builders.
"""

from __future__ import annotations

import io
import logging
import tarfile
import textwrap
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import httpx
import pytest

from reposx.core import logging_config
from reposx.core.config import ReposxConfig
from reposx.services.downloader import Downloader

BASE_URL = "http://repo.test/reposx/"


class FakeOrigin:
    """Serves fixed bodies by URL and records every request it receives."""

    def __init__(self, routes: Optional[Dict[str, bytes]] = None):
        self.routes: Dict[str, bytes] = dict(routes or {})
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        body = self.routes.get(url)
        if body is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(200, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def downloader(self) -> Downloader:
        return Downloader(timeout=5.0, transport=self.transport)


# (kind, name, payload) where kind is "dir", "file" or "symlink"
Entry = Tuple[str, str, object]


def tarball_bytes(entries: Iterable[Entry]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for kind, name, payload in entries:
            info = tarfile.TarInfo(name)
            if kind == "dir":
                info.type = tarfile.DIRTYPE
                info.mode = 0o700
                tar.addfile(info)
            elif kind == "file":
                data = payload if isinstance(payload, bytes) else str(payload).encode()
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
            elif kind == "symlink":
                info.type = tarfile.SYMTYPE
                info.linkname = str(payload)
                tar.addfile(info)
            else:
                raise ValueError(kind)
    return buf.getvalue()


def index_xml(packages: Dict[str, Tuple[str, str]]) -> str:
    """Render an index document from {name: (amd_url, arm_url)}."""
    items = []
    for name, (amd, arm) in packages.items():
        items.append(
            f'  <package name="{name}">\n'
            f"    <amd><url>{amd}</url></amd>\n"
            f"    <arm><url>{arm}</url></arm>\n"
            f"  </package>"
        )
    return "<packages>\n" + "\n".join(items) + "\n</packages>\n"


SAMPLE_INDEX = textwrap.dedent("""\
    <packages>
      <package name="hello">
        <amd><url>http://repo.test/files/hello-amd.tar.gz</url></amd>
        <arm><url>http://repo.test/files/hello-arm.tar.gz</url></arm>
      </package>
      <package name="armonly">
        <amd><url></url></amd>
        <arm><url>http://repo.test/files/armonly-arm.tar.gz</url></arm>
      </package>
    </packages>
""")


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def config(store_root: Path) -> ReposxConfig:
    return ReposxConfig(base_url=BASE_URL, root_dir=store_root, arch="x86_64")


@pytest.fixture
def origin() -> FakeOrigin:
    return FakeOrigin({f"{BASE_URL}index.xml": SAMPLE_INDEX.encode()})


@pytest.fixture(autouse=True)
def _detach_console_handler():
    """The CLI points its log handler at CliRunner's stderr, which closes after each invoke."""
    yield
    handler = logging_config._console_handler
    if handler is not None:
        logging.getLogger().removeHandler(handler)
        logging_config._console_handler = None
