"""Tests for placing, removing and migrating tool directories."""

import errno

import pytest

from geman.download.interfaces import ExtractedDirectory
from geman.download.version import Tag, ToolKind, Version
from geman.exceptions import FileSystemError, MigrationError
from geman.filesystem import (
    ToolDirectoryManager,
    installed_directory_name,
    is_in_app_tool_dir,
    migrated_directory_name,
    move_directory,
)
from geman.registry import ManagedVersion

pytestmark = [pytest.mark.unit]


@pytest.fixture
def manager(paths):
    return ToolDirectoryManager(paths)


def _make_dir(path, files=("file",)):
    path.mkdir(parents=True)
    for name in files:
        (path / name).write_text(name)
    return path


class TestDirectoryNames:
    """Test naming of installed and migrated directories."""

    def test_default_label_keeps_extracted_name(self):
        assert installed_directory_name("GE-Proton7-22", "GE-Proton7-22", "GE-Proton7-22") == "GE-Proton7-22"

    def test_counter_label_is_appended(self):
        assert installed_directory_name("Proton-6.20-GE-1", "6.20-GE-1", "6.20-GE-1_1") == "Proton-6.20-GE-1_1"

    def test_migrated_name(self):
        assert (
            migrated_directory_name(Version.lol("6.16-GE-3-LoL"), "mine")
            == "GE-MAN_LoL_Wine_6.16-GE-3-LoL_Lmine"
        )

    def test_is_in_app_tool_dir(self, tmp_path):
        assert is_in_app_tool_dir(tmp_path / "Steam" / "compatibilitytools.d" / "x")
        assert is_in_app_tool_dir(tmp_path / "lutris" / "runners" / "wine" / "x")
        assert not is_in_app_tool_dir(tmp_path / "Downloads" / "x")


class TestMoveDirectory:
    """Test move_directory including the cross-device fallback."""

    def test_move(self, tmp_path):
        source = _make_dir(tmp_path / "a")
        move_directory(source, tmp_path / "b")
        assert (tmp_path / "b" / "file").read_text() == "file"
        assert not source.exists()

    def test_destination_exists(self, tmp_path):
        source = _make_dir(tmp_path / "a")
        (tmp_path / "b").mkdir()
        with pytest.raises(FileSystemError):
            move_directory(source, tmp_path / "b")
        assert source.exists()

    def test_cross_device_falls_back_to_copy(self, tmp_path, mocker):
        source = _make_dir(tmp_path / "a")
        mocker.patch(
            "geman.filesystem.os.rename",
            side_effect=OSError(errno.EXDEV, "Invalid cross-device link"),
        )

        move_directory(source, tmp_path / "b")

        assert (tmp_path / "b" / "file").exists()
        assert not source.exists()

    def test_other_rename_errors_propagate(self, tmp_path, mocker):
        source = _make_dir(tmp_path / "a")
        mocker.patch(
            "geman.filesystem.os.rename",
            side_effect=OSError(errno.EACCES, "Permission denied"),
        )
        with pytest.raises(FileSystemError):
            move_directory(source, tmp_path / "b")


class TestToolDirectoryManager:
    """Test ToolDirectoryManager operations."""

    def test_setup_version(self, manager, paths, tmp_path):
        extracted_path = _make_dir(tmp_path / "scratch" / "GE-Proton7-22")
        extracted = ExtractedDirectory(
            tag=Tag("GE-Proton7-22"), kind=ToolKind.PROTON, path=extracted_path
        )

        target = manager.setup_version(extracted, "GE-Proton7-22_1")

        assert target == paths.steam_tools_dir / "GE-Proton7-22_1"
        assert (target / "file").exists()

    def test_remove_version(self, manager, paths):
        _make_dir(paths.lutris_runners_dir / "lutris-ge-6.21-2")
        managed = ManagedVersion(Tag("6.21-GE-2"), ToolKind.WINE, "lutris-ge-6.21-2")

        manager.remove_version(managed)

        assert not (paths.lutris_runners_dir / "lutris-ge-6.21-2").exists()

    def test_remove_missing_directory_only_warns(self, manager, mocker):
        mock_logger = mocker.patch("geman.filesystem.logger")
        managed = ManagedVersion(Tag("6.21-GE-2"), ToolKind.WINE, "gone")

        manager.remove_version(managed)

        mock_logger.warning.assert_called_once()

    @pytest.mark.parametrize("directory_name", ["..", "../..", "", "."])
    def test_remove_refuses_paths_outside_tool_dir(self, manager, paths, directory_name):
        paths.steam_tools_dir.mkdir(parents=True)
        managed = ManagedVersion(Tag("GE-Proton7-22"), ToolKind.PROTON, directory_name)
        with pytest.raises(FileSystemError):
            manager.remove_version(managed)
        assert paths.steam_tools_dir.exists()

    def test_migrate_moves_outside_directory(self, manager, paths, tmp_path):
        source = _make_dir(tmp_path / "Downloads" / "GE-Proton7-20")

        name = manager.migrate_folder(Version.proton("GE-Proton7-20"), "GE-Proton7-20", source)

        assert name == "GE-MAN_Proton_GE-Proton7-20_LGE-Proton7-20"
        assert (paths.steam_tools_dir / name / "file").exists()
        assert not source.exists()

    def test_migrate_keeps_directory_in_tool_dir(self, manager, paths):
        source = _make_dir(paths.steam_tools_dir / "Proton-6.20-GE-1")

        name = manager.migrate_folder(Version.proton("6.20-GE-1"), "6.20-GE-1", source)

        assert name == "Proton-6.20-GE-1"
        assert source.exists()

    def test_migrate_missing_source(self, manager, tmp_path):
        with pytest.raises(MigrationError):
            manager.migrate_folder(Version.proton("6.20-GE-1"), "x", tmp_path / "nope")

    def test_migrate_collision(self, manager, paths, tmp_path):
        source = _make_dir(tmp_path / "GE-Proton7-20")
        _make_dir(paths.steam_tools_dir / "GE-MAN_Proton_GE-Proton7-20_Lx")
        with pytest.raises(MigrationError):
            manager.migrate_folder(Version.proton("GE-Proton7-20"), "x", source)

    def test_copy_user_settings(self, manager, paths):
        _make_dir(paths.steam_tools_dir / "GE-Proton7-20", files=("user_settings.py",))
        _make_dir(paths.steam_tools_dir / "GE-Proton7-22")
        source = ManagedVersion(Tag("GE-Proton7-20"), ToolKind.PROTON, "GE-Proton7-20")
        target = ManagedVersion(Tag("GE-Proton7-22"), ToolKind.PROTON, "GE-Proton7-22")

        copied = manager.copy_user_settings(source, target)

        assert copied.read_text() == "user_settings.py"

    def test_copy_user_settings_requires_proton(self, manager):
        source = ManagedVersion(Tag("6.21-GE-2"), ToolKind.WINE, "lutris-ge-6.21-2")
        target = ManagedVersion(Tag("GE-Proton7-22"), ToolKind.PROTON, "GE-Proton7-22")
        with pytest.raises(FileSystemError):
            manager.copy_user_settings(source, target)

    def test_copy_user_settings_missing_file(self, manager, paths):
        _make_dir(paths.steam_tools_dir / "GE-Proton7-20")
        _make_dir(paths.steam_tools_dir / "GE-Proton7-22")
        source = ManagedVersion(Tag("GE-Proton7-20"), ToolKind.PROTON, "GE-Proton7-20")
        target = ManagedVersion(Tag("GE-Proton7-22"), ToolKind.PROTON, "GE-Proton7-22")
        with pytest.raises(FileSystemError):
            manager.copy_user_settings(source, target)

    def test_list_tool_dirs(self, manager, paths):
        assert manager.list_tool_dirs(ToolKind.WINE) == []
        _make_dir(paths.lutris_runners_dir / "b")
        _make_dir(paths.lutris_runners_dir / "a")
        (paths.lutris_runners_dir / "stray.txt").write_text("")
        assert manager.list_tool_dirs(ToolKind.LOL_WINE) == ["a", "b"]
