"""Tests for path resolution."""

from pathlib import Path

import pytest

from geman.download.version import ToolKind
from geman.paths import PathConfiguration, default_settings_file

pytestmark = [pytest.mark.unit]


def test_xdg_layout(paths):
    data = Path(paths.data_dir)

    assert paths.managed_versions_file == data / "ge_man" / "managed_versions.json"
    assert paths.settings_file == default_settings_file()
    assert paths.log_dir == paths.state_dir / "ge_man" / "log"
    assert paths.steam_tools_dir == data / "Steam" / "compatibilitytools.d"
    assert paths.steam_config == data / "Steam" / "config" / "config.vdf"
    assert paths.lutris_runners_dir == data / "lutris" / "runners" / "wine"
    assert paths.lutris_config == paths.config_dir / "lutris" / "runners" / "wine.yml"


def test_platformdirs_fallback(monkeypatch, mocker, tmp_path):
    monkeypatch.delenv("XDG_DATA_HOME")
    mocker.patch("geman.paths.platformdirs.user_data_dir", return_value=str(tmp_path))

    assert PathConfiguration.from_environment().data_dir == tmp_path


def test_steam_root_precedence(monkeypatch, tmp_path):
    paths = PathConfiguration.from_environment(str(tmp_path / "settings-steam"))
    assert paths.steam_root == tmp_path / "settings-steam"

    monkeypatch.setenv("STEAM_PATH", str(tmp_path / "env-steam"))
    assert paths.steam_root == tmp_path / "env-steam"


def test_app_dirs_by_kind(paths):
    assert paths.app_tool_dir(ToolKind.PROTON) == paths.steam_tools_dir
    assert paths.app_tool_dir(ToolKind.LOL_WINE) == paths.lutris_runners_dir
    assert paths.app_config_file(ToolKind.WINE) == paths.lutris_config
    assert paths.app_config_backup_file(ToolKind.PROTON).name == "steam-config-backup.vdf"
    assert (
        paths.app_config_backup_file(ToolKind.LOL_WINE).name
        == "lutris-wine-runner-config-backup.yml"
    )


def test_create_dirs(paths):
    paths.create_ge_man_dirs()
    paths.create_app_dirs()

    assert paths.ge_man_data_dir.is_dir()
    assert paths.ge_man_config_dir.is_dir()
    assert paths.ge_man_state_dir.is_dir()
    assert paths.steam_tools_dir.is_dir()
    assert paths.lutris_runners_dir.is_dir()
