"""Tests for asset discovery and config.txt identity handling."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from tzasset.lib.assets import (
    KUID_DUMMY,
    KUID_DUMMY_TAG,
    AssetDiscoveryError,
    find_kuid,
    find_username,
    locate_assets,
    replace_kuid,
    replace_kuid_in,
)


def _write_asset(directory: Path, kuid: str = "kuid:12345:1:0", username: str | None = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    text = f"kuid <{kuid}>\n"
    if username is not None:
        text += f'username "{username}"\n'
    text += "kind scenery\n"
    (directory / "config.txt").write_text(text, encoding="utf-8")
    return directory


# ── Tag parsing ───────────────────────────────────────────────────────


class TestFindKuid:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("kuid <kuid:12345:1>\n", "kuid:12345:1"),
            ("kuid <kuid:12345:1:0>\n", "kuid:12345:1:0"),
            ("kuid\t<kuid2:523:100:2>\n", "kuid2:523:100:2"),
            ('username "x"\nKUID <KUID:1:2>\n', "KUID:1:2"),
            ("kind mesh\r\nkuid <kuid:1:2>\r\n", "kuid:1:2"),
        ],
    )
    def test_matches(self, text, expected):
        assert find_kuid(text) == expected

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "  kuid <kuid:1:2>\n",
            "kuid kuid:1:2\n",
            "kuid <kuid3:1:2>\n",
            "kuid <kuid:1>\n",
            "obsolete-table { kuid <kuid:1:2> }\n",
        ],
    )
    def test_no_match(self, text):
        assert find_kuid(text) is None

    def test_first_match_wins(self):
        assert find_kuid("kuid <kuid:1:1>\nkuid <kuid:2:2>\n") == "kuid:1:1"


class TestFindUsername:
    def test_present(self):
        assert find_username('kuid <kuid:1:2>\nusername "Test Asset"\n') == "Test Asset"

    def test_empty(self):
        assert find_username('username ""\n') == ""

    def test_absent(self):
        assert find_username("kuid <kuid:1:2>\n") is None


class TestReplaceKuid:
    def test_replaces_identity_line(self):
        text = 'kuid <kuid:12345:1:0>\nusername "Test Asset"\n'
        assert replace_kuid(text) == f'{KUID_DUMMY_TAG}\nusername "Test Asset"\n'
        assert find_kuid(replace_kuid(text)) == KUID_DUMMY

    def test_idempotent(self):
        text = "kind scenery\nkuid <kuid2:1:2:3>\n"
        once = replace_kuid(text)
        assert replace_kuid(once) == once

    def test_only_first_tag(self):
        text = "kuid <kuid:1:1>\nkuid <kuid:2:2>\n"
        assert replace_kuid(text) == f"{KUID_DUMMY_TAG}\nkuid <kuid:2:2>\n"

    def test_in_place_keeps_line_endings(self, tmp_path):
        config = tmp_path / "config.txt"
        config.write_bytes(b'kuid <kuid:1:2>\r\nusername "A"\r\n')
        replace_kuid_in(tmp_path)
        assert config.read_bytes() == f'{KUID_DUMMY_TAG}\r\nusername "A"\r\n'.encode()


# ── Discovery ─────────────────────────────────────────────────────────


class TestLocateAssets:
    def test_root_is_asset(self, tmp_path):
        _write_asset(tmp_path, username="Test Asset")
        assets = locate_assets(tmp_path)
        assert len(assets) == 1
        asset = assets[0]
        assert asset.kuid == "kuid:12345:1:0"
        assert asset.name == "Test Asset"
        assert asset.display_name == "Test Asset"
        assert asset.root_path == tmp_path.resolve()
        assert asset.config_path == tmp_path.resolve() / "config.txt"

    def test_display_name_falls_back_to_kuid(self, tmp_path):
        _write_asset(tmp_path)
        assert locate_assets(tmp_path)[0].display_name == "<kuid:12345:1:0>"

    def test_non_recursive_without_marker_is_empty(self, tmp_path):
        _write_asset(tmp_path / "child")
        assert locate_assets(tmp_path, recursive=False) == []

    def test_recursive_finds_siblings(self, tmp_path):
        _write_asset(tmp_path / "a", kuid="kuid:1:1")
        _write_asset(tmp_path / "b", kuid="kuid:2:2")
        assets = locate_assets(tmp_path, recursive=True)
        assert sorted(a.kuid for a in assets) == ["kuid:1:1", "kuid:2:2"]
        assert {a.root_path.name for a in assets} == {"a", "b"}

    def test_recursive_finds_deep_assets(self, tmp_path):
        _write_asset(tmp_path / "route" / "scenery" / "tree", kuid="kuid:3:3")
        assets = locate_assets(tmp_path, recursive=True)
        assert [a.kuid for a in assets] == ["kuid:3:3"]

    def test_does_not_descend_into_asset_root(self, tmp_path):
        outer = _write_asset(tmp_path / "outer", kuid="kuid:1:1")
        _write_asset(outer / "nested" / "deeper", kuid="kuid:9:9")
        assets = locate_assets(tmp_path, recursive=True)
        assert [a.kuid for a in assets] == ["kuid:1:1"]

    def test_config_without_kuid_stops_descent(self, tmp_path):
        (tmp_path / "folder").mkdir()
        (tmp_path / "folder" / "config.txt").write_text("kind scenery\n", encoding="utf-8")
        _write_asset(tmp_path / "folder" / "inner")
        assert locate_assets(tmp_path, recursive=True) == []

    @pytest.mark.parametrize("name", [".git", ".hg", ".svn"])
    def test_skips_vcs_directories(self, tmp_path, name):
        _write_asset(tmp_path / name / "asset")
        assert locate_assets(tmp_path, recursive=True) == []

    def test_files_are_not_descended(self, tmp_path):
        (tmp_path / "readme.txt").write_text("hi", encoding="utf-8")
        assert locate_assets(tmp_path, recursive=True) == []

    def test_order_is_stable(self, tmp_path):
        for i in range(5):
            _write_asset(tmp_path / f"asset{i}", kuid=f"kuid:{i}:1")
        first = locate_assets(tmp_path, recursive=True)
        second = locate_assets(tmp_path, recursive=True)
        assert first == second

    def test_unreadable_config_is_fatal(self, tmp_path):
        _write_asset(tmp_path)
        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(AssetDiscoveryError, match="config.txt"):
                locate_assets(tmp_path)

    def test_untraversable_directory_is_fatal(self, tmp_path):
        _write_asset(tmp_path / "locked")
        with patch.object(Path, "is_file", side_effect=PermissionError(13, "denied")):
            with pytest.raises(AssetDiscoveryError, match="config.txt") as exc_info:
                locate_assets(tmp_path, recursive=True)
        assert isinstance(exc_info.value.cause, PermissionError)

    def test_unreadable_directory_is_fatal(self, tmp_path):
        with patch("tzasset.lib.assets.locator.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(AssetDiscoveryError):
                locate_assets(tmp_path, recursive=True)

    def test_missing_root_is_fatal_when_recursive(self, tmp_path):
        with pytest.raises(AssetDiscoveryError):
            locate_assets(tmp_path / "nope", recursive=True)
