"""
Client configuration.

Priority (highest first):
1. Environment variables REPOSX_BASE_URL, REPOSX_HOME, REPOSX_TIMEOUT, REPOSX_ARCH
2. <ROOT>/config.json, when present
3. Built-in defaults (origin below, store under ~/.local/reposx)
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

TOOL_NAME = "reposx"
DEFAULT_BASE_URL = "http://93.100.25.80:8080/reposx/"
INDEX_FILENAME = "index.xml"
CONFIG_FILENAME = "config.json"

BASE_URL_ENV_VAR = "REPOSX_BASE_URL"
HOME_ENV_VAR = "REPOSX_HOME"
TIMEOUT_ENV_VAR = "REPOSX_TIMEOUT"
ARCH_ENV_VAR = "REPOSX_ARCH"

_ENV_FIELDS = {
    BASE_URL_ENV_VAR: "base_url",
    HOME_ENV_VAR: "root_dir",
    TIMEOUT_ENV_VAR: "timeout_seconds",
    ARCH_ENV_VAR: "arch",
}


class ReposxConfig(BaseModel):
    """
    Settings for one reposx invocation.
    Optionally persisted at: <ROOT>/config.json
    """

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Origin that serves index.xml; always ends with '/'.",
    )
    root_dir: Optional[Path] = Field(
        default=None,
        description="Store root. None means <home>/.local/reposx.",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout applied to every HTTP request.",
    )
    arch: Optional[str] = Field(
        default=None,
        description="Machine name override (e.g. 'x86_64', 'aarch64'). None means the running host.",
    )

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.endswith("/"):
            value = f"{value}/"
        return value

    @property
    def index_url(self) -> str:
        return f"{self.base_url}{INDEX_FILENAME}"


def default_root_dir() -> Path:
    """<home>/.local/reposx. Raises RuntimeError when the home directory is unknown."""
    return Path.home() / ".local" / TOOL_NAME


def _read_config_file(path: Path) -> Dict[str, object]:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring config file {path}: expected a JSON object")
        return {}
    return raw


def load_config(environ: Optional[Mapping[str, str]] = None) -> ReposxConfig:
    """
    Build the configuration from defaults, the optional config file and the
    environment.
    """
    environ = os.environ if environ is None else environ

    overrides: Dict[str, object] = {}
    for env_var, field_name in _ENV_FIELDS.items():
        value = environ.get(env_var)
        if value:
            overrides[field_name] = value

    root: Optional[Path]
    if "root_dir" in overrides:
        root = Path(str(overrides["root_dir"])).expanduser()
        overrides["root_dir"] = root
    else:
        try:
            root = default_root_dir()
        except RuntimeError:
            # LocalStore reports this when the root is actually needed.
            root = None

    file_values: Dict[str, object] = {}
    if root is not None:
        file_values = _read_config_file(root / CONFIG_FILENAME)
        # The file lives inside the root, so it cannot relocate it.
        file_values.pop("root_dir", None)

    try:
        config = ReposxConfig(**{**file_values, **overrides})
    except ValidationError as e:
        if not file_values:
            raise
        logger.warning(f"Invalid values in {root / CONFIG_FILENAME}, using defaults: {e}")
        config = ReposxConfig(**overrides)

    logger.debug(f"Configuration: {config.model_dump()}")
    return config


_config: Optional[ReposxConfig] = None


def get_config() -> ReposxConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[ReposxConfig]) -> None:
    """Replace (or with None, reset) the process-wide configuration."""
    global _config
    _config = config
