from __future__ import annotations

import os
import stat
from pathlib import Path

import allure
import pytest

from lfs_locks.assets import MetaFileAssetIdResolver
from lfs_locks.persistence import JsonSettingsStore
from lfs_locks.tool import locate_lfs_tool

pytestmark = [
    allure.epic("Lock Cache"),
    allure.feature("Environment"),
]


def _make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/usr/bin/env sh\nexit 0\n", "utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@pytest.mark.skipif(os.name == "nt", reason="POSIX executable bits")
def test_locate_prefers_search_path(tmp_path: Path) -> None:
    on_path = _make_executable(tmp_path / "bin" / "git-lfs")
    fallback = _make_executable(tmp_path / "brew" / "git-lfs")

    tool = locate_lfs_tool(search_path=str(on_path.parent), well_known_locations=(str(fallback),))

    assert tool.exists is True
    assert tool.executable == str(on_path)


def test_locate_falls_back_to_well_known_location(tmp_path: Path) -> None:
    fallback = _make_executable(tmp_path / "brew" / "git-lfs")

    tool = locate_lfs_tool(
        search_path=str(tmp_path / "empty"),
        well_known_locations=(str(tmp_path / "missing" / "git-lfs"), str(fallback)),
    )

    assert tool.executable == str(fallback)


def test_locate_reports_missing_tool(tmp_path: Path) -> None:
    tool = locate_lfs_tool(search_path=str(tmp_path), well_known_locations=())

    assert tool.exists is False
    assert tool.executable == ""


@pytest.mark.skipif(os.name == "nt", reason="POSIX executable bits")
def test_locate_honours_explicit_override(tmp_path: Path) -> None:
    custom = _make_executable(tmp_path / "tools" / "custom-lfs")

    assert locate_lfs_tool(str(custom), search_path="").executable == str(custom)
    assert locate_lfs_tool(str(tmp_path / "nope"), search_path="").exists is False


def test_meta_resolver_reads_guid(tmp_path: Path) -> None:
    (tmp_path / "Assets").mkdir()
    (tmp_path / "Assets" / "a.png.meta").write_text(
        "fileFormatVersion: 2\nguid: 9f8e7d6c5b4a\nTextureImporter:\n",
        "utf-8",
    )
    resolver = MetaFileAssetIdResolver(tmp_path)

    assert resolver.resolve("Assets/a.png") == "9f8e7d6c5b4a"
    assert resolver.resolve("Assets/missing.png") == ""


def test_json_settings_store_round_trip_and_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "UserSettings" / "Git" / "Settings.json"
    store = JsonSettingsStore(path)
    assert store.load() is None

    store.save({"username": "mikerochip", "locks": []})
    assert store.load() == {"username": "mikerochip", "locks": []}

    path.write_text("[1, 2]", "utf-8")
    assert store.load() is None
    path.write_text("{not json", "utf-8")
    assert store.load() is None
