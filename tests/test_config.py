"""
Tests for configuration loading and architecture resolution.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reposx.core.config import DEFAULT_BASE_URL, ReposxConfig, load_config
from reposx.domain.arch import resolve_family
from reposx.domain.errors import UnsupportedArchitectureError
from reposx.domain.models import ArchitectureFamily


class TestReposxConfig:

    def test_defaults(self):
        config = ReposxConfig()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.index_url == f"{DEFAULT_BASE_URL}index.xml"
        assert config.root_dir is None
        assert config.timeout_seconds == 60.0

    def test_base_url_gets_trailing_slash(self):
        assert ReposxConfig(base_url="http://mirror.test/repo").index_url == "http://mirror.test/repo/index.xml"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            ReposxConfig(timeout_seconds=0)


class TestLoadConfig:

    def test_environment(self, tmp_path: Path):
        config = load_config({
            "REPOSX_HOME": str(tmp_path),
            "REPOSX_BASE_URL": "http://mirror.test/",
            "REPOSX_TIMEOUT": "5",
            "REPOSX_ARCH": "aarch64",
        })
        assert config.root_dir == tmp_path
        assert config.base_url == "http://mirror.test/"
        assert config.timeout_seconds == 5.0
        assert config.arch == "aarch64"

    def test_config_file(self, tmp_path: Path):
        (tmp_path / "config.json").write_text(json.dumps({"base_url": "http://file.test/x/"}))
        config = load_config({"REPOSX_HOME": str(tmp_path)})
        assert config.base_url == "http://file.test/x/"

    def test_environment_beats_config_file(self, tmp_path: Path):
        (tmp_path / "config.json").write_text(json.dumps({"base_url": "http://file.test/"}))
        config = load_config({"REPOSX_HOME": str(tmp_path), "REPOSX_BASE_URL": "http://env.test/"})
        assert config.base_url == "http://env.test/"

    def test_invalid_config_file_is_ignored(self, tmp_path: Path):
        (tmp_path / "config.json").write_text("{ not json")
        config = load_config({"REPOSX_HOME": str(tmp_path)})
        assert config.base_url == DEFAULT_BASE_URL

    def test_invalid_config_values_fall_back_to_defaults(self, tmp_path: Path):
        (tmp_path / "config.json").write_text(json.dumps({"timeout_seconds": -1}))
        config = load_config({"REPOSX_HOME": str(tmp_path)})
        assert config.timeout_seconds == 60.0

    def test_config_file_cannot_move_root(self, tmp_path: Path):
        (tmp_path / "config.json").write_text(json.dumps({"root_dir": "/elsewhere"}))
        config = load_config({"REPOSX_HOME": str(tmp_path)})
        assert config.root_dir == tmp_path


class TestResolveFamily:

    @pytest.mark.parametrize("machine", ["x86_64", "AMD64", "i386", "i686"])
    def test_amd_family(self, machine):
        assert resolve_family(machine) is ArchitectureFamily.AMD

    @pytest.mark.parametrize("machine", ["aarch64", "arm64", "armv7l", "armv6l"])
    def test_arm_family(self, machine):
        assert resolve_family(machine) is ArchitectureFamily.ARM

    def test_unknown(self):
        with pytest.raises(UnsupportedArchitectureError, match="sparc64"):
            resolve_family("sparc64")

    def test_host_machine_is_default(self, monkeypatch):
        monkeypatch.setattr("reposx.domain.arch.platform.machine", lambda: "aarch64")
        assert resolve_family() is ArchitectureFamily.ARM
