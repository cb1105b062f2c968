"""Tests for loading GE-Man's own settings file."""

import pytest

from geman.exceptions import ConfigFileError, ConfigurationError
from geman.settings import Settings, expand_env_vars, load_settings

pytestmark = [pytest.mark.unit]


class TestExpandEnvVars:
    """Test $NAME expansion in path settings."""

    def test_expands_references(self, monkeypatch):
        monkeypatch.setenv("GAMES", "/mnt/games")
        assert expand_env_vars("$GAMES/Steam") == "/mnt/games/Steam"

    def test_plain_value_untouched(self):
        assert expand_env_vars("/home/user/.steam") == "/home/user/.steam"

    def test_undefined_variable(self, monkeypatch):
        monkeypatch.delenv("GE_MAN_UNSET_VAR", raising=False)
        with pytest.raises(ConfigurationError):
            expand_env_vars("$GE_MAN_UNSET_VAR/Steam")


class TestLoadSettings:
    """Test load_settings with the YAML settings file."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "config.yml") == Settings()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_all_keys(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME_DIR", "/home/gamer")
        path = tmp_path / "config.yml"
        path.write_text(
            "STEAM_ROOT_PATH: $HOME_DIR/.steam/root\n"
            "LOG_LEVEL: DEBUG\n"
            "GITHUB_TOKEN: ghp_example\n"
            "ALLOW_ENV_TOKEN: false\n"
        )

        settings = load_settings(path)

        assert settings.steam_root_path == "/home/gamer/.steam/root"
        assert settings.log_level == "DEBUG"
        assert settings.github_token == "ghp_example"
        assert settings.allow_env_token is False

    def test_legacy_steam_root_key(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("steam_root_path: /opt/steam\n")
        assert load_settings(path).steam_root_path == "/opt/steam"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("LOG_LEVEL: [DEBUG\n")
        with pytest.raises(ConfigFileError):
            load_settings(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ConfigFileError):
            load_settings(path)

    def test_non_string_steam_root(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("STEAM_ROOT_PATH: 42\n")
        with pytest.raises(ConfigurationError):
            load_settings(path)
