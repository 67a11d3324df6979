"""KUID and username tags in asset ``config.txt`` files."""

from __future__ import annotations

import re
from pathlib import Path

CONFIG_FILE = "config.txt"

KUID_DUMMY = "kuid:298469:999999"
KUID_DUMMY_TAG = f"kuid  <{KUID_DUMMY}>"

_KUID_PATTERN = re.compile(
    r"^kuid\s+<(kuid2?:\d+:\d+(?::\d+)?)>",
    re.IGNORECASE | re.MULTILINE,
)
_USERNAME_PATTERN = re.compile(r'^username\s+"([^"]*)"', re.IGNORECASE | re.MULTILINE)


def find_kuid(text: str) -> str | None:
    """Return the first ``kuid <...>`` identity in a config text."""
    match = _KUID_PATTERN.search(text)
    return match.group(1) if match else None


def find_username(text: str) -> str | None:
    match = _USERNAME_PATTERN.search(text)
    return match.group(1) if match else None


def replace_kuid(text: str) -> str:
    """Replace the first identity tag with the dummy tag.

    Applying it twice gives the same result as applying it once.
    """
    return _KUID_PATTERN.sub(KUID_DUMMY_TAG, text, count=1)


def replace_kuid_in(asset_root: Path) -> None:
    """Rewrite the identity tag of ``asset_root/config.txt`` in place."""
    config_path = asset_root / CONFIG_FILE
    # newline="" keeps the file's own line endings
    with config_path.open(encoding="utf-8", errors="surrogateescape", newline="") as f:
        text = f.read()
    with config_path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as f:
        f.write(replace_kuid(text))
