"""Asset discovery in a directory tree.

A directory is an asset root when it holds a ``config.txt`` with a
``kuid <...>`` tag. Asset roots are leaves: nothing below a matched
directory is searched.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from tzasset.lib.assets.kuid import CONFIG_FILE, find_kuid, find_username

logger = logging.getLogger("tzasset.locator")

# Version-control metadata directories are never searched.
SKIPPED_DIRS = frozenset({".git", ".hg", ".svn"})


class AssetDiscoveryError(RuntimeError):
    """A directory or config file could not be read during discovery."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot read {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass(frozen=True)
class AssetDescriptor:
    """One buildable asset: its identity and the directory holding it."""

    kuid: str
    root_path: Path
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else f"<{self.kuid}>"

    @property
    def config_path(self) -> Path:
        return self.root_path / CONFIG_FILE


def locate_assets(root: str | Path, recursive: bool = False) -> list[AssetDescriptor]:
    """Find asset roots under ``root``, depth-first in directory listing order.

    Args:
        root: Directory to start from.
        recursive: Search subdirectories of directories without a
            ``config.txt``. When False only ``root`` itself is checked.

    Raises:
        AssetDiscoveryError: If a config file or directory is unreadable.
    """
    located: list[AssetDescriptor] = []
    _locate(Path(root).resolve(), recursive, located)
    return located


def _locate(path: Path, recursive: bool, located: list[AssetDescriptor]) -> None:
    logger.debug("Entering directory: %s", path)

    config_path = path / CONFIG_FILE
    try:
        # stat can fail too when the directory is not traversable
        text = config_path.read_text(encoding="utf-8", errors="replace") if config_path.is_file() else None
    except OSError as e:
        raise AssetDiscoveryError(config_path, e) from e

    if text is not None:
        kuid = find_kuid(text)
        if kuid is None:
            # A config.txt without a kuid still ends the search here
            logger.debug("No kuid in %s", config_path)
            return

        logger.debug("Found kuid <%s> in %s", kuid, config_path)
        located.append(AssetDescriptor(kuid=kuid, root_path=path, name=find_username(text)))
        return

    if not recursive:
        return

    try:
        with os.scandir(path) as it:
            subdirs = [
                Path(entry.path)
                for entry in it
                if entry.is_dir() and entry.name not in SKIPPED_DIRS
            ]
    except OSError as e:
        raise AssetDiscoveryError(path, e) from e

    for subdir in subdirs:
        _locate(subdir, recursive, located)
