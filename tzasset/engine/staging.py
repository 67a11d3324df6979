"""Staging an asset for installation.

In dummy mode the asset's files are copied to a staging directory and its
kuid is rewritten, so the real asset in TrainzUtil's database is untouched.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from tzasset.config import InstallMode
from tzasset.lib.assets import KUID_DUMMY, AssetDescriptor, replace_kuid_in

logger = logging.getLogger("tzasset.staging")

TEMP_PREFIX = "tzassetbuild"


class StagingError(OSError):
    """The staging directory could not be used for an asset."""


class StagingCleanupError(StagingError):
    """The asset was processed but its staging directory could not be removed."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot remove staging directory {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass(frozen=True)
class StagedAsset:
    path: Path
    kuid: str


def reset_dir(path: Path) -> None:
    """Empty ``path``, creating it if needed."""
    if not path.exists():
        path.mkdir(parents=True)
        return
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def _check_no_overlap(temp_dir: Path, asset: AssetDescriptor) -> None:
    target = temp_dir.resolve()
    root = asset.root_path.resolve()
    if target == root or target in root.parents or root in target.parents:
        raise StagingError(f"Staging directory {target} overlaps asset directory {root}")


def _remove_staging_dir(path: Path, *, strict: bool = True) -> None:
    try:
        shutil.rmtree(path)
    except OSError as e:
        if strict:
            raise StagingCleanupError(path, e) from e
        logger.warning("Could not remove staging directory %s: %s", path, e)
    else:
        logger.debug("Removed staging directory %s", path)


def _copy_with_dummy_kuid(asset: AssetDescriptor, dest: Path) -> StagedAsset:
    logger.debug("Copying %s to %s", asset.root_path, dest)
    shutil.copytree(asset.root_path, dest, dirs_exist_ok=True)
    replace_kuid_in(dest)
    return StagedAsset(path=dest, kuid=KUID_DUMMY)


@contextmanager
def staged_asset(
    asset: AssetDescriptor,
    install_mode: InstallMode,
    temp_dir: Path | None = None,
) -> Iterator[StagedAsset]:
    """Yield the path and kuid TrainzUtil should use for ``asset``.

    A configured ``temp_dir`` is cleared before use and left in place; it
    must not be, contain, or sit inside the asset directory. Otherwise a
    temporary directory is created and removed on exit.

    A removal failure after the body raised is only logged, so the
    original exception propagates unchanged.

    Raises:
        StagingError: If ``temp_dir`` overlaps the asset directory.
        StagingCleanupError: If the temporary directory cannot be removed
            after a successful run of the body.
        OSError: If copying or rewriting the staged files fails.
    """
    if install_mode is InstallMode.DIRECT:
        yield StagedAsset(path=asset.root_path, kuid=asset.kuid)
        return

    if temp_dir is not None:
        _check_no_overlap(temp_dir, asset)
        reset_dir(temp_dir)
        yield _copy_with_dummy_kuid(asset, temp_dir)
        return

    tmp = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    try:
        yield _copy_with_dummy_kuid(asset, tmp)
    except BaseException:
        _remove_staging_dir(tmp, strict=False)
        raise
    _remove_staging_dir(tmp)
