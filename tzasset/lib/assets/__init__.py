"""Asset discovery and config.txt identity handling."""

from tzasset.lib.assets.kuid import (
    CONFIG_FILE,
    KUID_DUMMY,
    KUID_DUMMY_TAG,
    find_kuid,
    find_username,
    replace_kuid,
    replace_kuid_in,
)
from tzasset.lib.assets.locator import (
    SKIPPED_DIRS,
    AssetDescriptor,
    AssetDiscoveryError,
    locate_assets,
)

__all__ = [
    "CONFIG_FILE",
    "KUID_DUMMY",
    "KUID_DUMMY_TAG",
    "find_kuid",
    "find_username",
    "replace_kuid",
    "replace_kuid_in",
    "SKIPPED_DIRS",
    "AssetDescriptor",
    "AssetDiscoveryError",
    "locate_assets",
]
