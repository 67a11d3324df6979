"""tzasset configuration -- layered: CLI flags > env vars > defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tzasset.lib.trainzutil import resolve_tool_path
from tzasset.log import Mode

logger = logging.getLogger("tzasset.config")


class ConfigError(ValueError):
    """An environment variable or option holds an unusable value."""


class InstallMode(str, Enum):
    """How an asset is presented to TrainzUtil."""

    DUMMY = "dummy"    # staged copy under the dummy kuid
    DIRECT = "direct"  # asset directory and its own kuid


class LabelStyle(str, Enum):
    """How assets are named in output lines."""

    PATH = "path"
    CONFIG = "config"
    KUID = "kuid"


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key) or default


def _env_flag(key: str) -> bool:
    return _env(key).lower() in ("true", "1", "yes")


def _env_path(key: str) -> Path | None:
    value = _env(key)
    return Path(value) if value else None


def _env_float(key: str, default: float) -> float:
    value = _env(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {value!r}") from None


def _env_label(key: str) -> LabelStyle:
    value = _env(key, default=LabelStyle.PATH.value).lower()
    try:
        return LabelStyle(value)
    except ValueError:
        choices = ", ".join(style.value for style in LabelStyle)
        raise ConfigError(f"{key} must be one of {choices}, got {value!r}") from None


@dataclass
class BuildConfig:
    """Configuration for one tzbuildasset run."""

    # TrainzUtil
    trainzutil_path: str = field(default_factory=resolve_tool_path)

    # Discovery
    recursive: bool = field(default_factory=lambda: _env_flag("TZASSET_RECURSIVE"))

    # Staging
    install_mode: InstallMode = InstallMode.DUMMY
    temp_dir: Path | None = field(default_factory=lambda: _env_path("TZASSET_TEMP_DIR"))
    cleanup: bool = field(default_factory=lambda: _env_flag("TZASSET_CLEANUP"))
    validate_delay: float = field(default_factory=lambda: _env_float("TZASSET_VALIDATE_DELAY", 0.0))

    # Output
    mode: Mode = Mode.NORMAL
    label_style: LabelStyle = field(default_factory=lambda: _env_label("TZASSET_LABEL"))
    report_file: Path | None = field(default_factory=lambda: _env_path("TZASSET_REPORT_FILE"))
    log_level: str = field(default_factory=lambda: _env("TZASSET_LOG_LEVEL", default="WARNING"))

    def __post_init__(self) -> None:
        if self.validate_delay < 0:
            raise ConfigError(f"validate_delay must not be negative: {self.validate_delay}")
        logger.debug("Config: %s", self)
