import io
import tarfile

import platformdirs
import pytest
import requests

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock GithubClient or requests.get."
)

STEAM_CONFIG_TEMPLATE = (
    '"InstallConfigStore"\n'
    "{\n"
    '\t"Software"\n'
    "\t{\n"
    '\t\t"Valve"\n'
    "\t\t{\n"
    '\t\t\t"Steam"\n'
    "\t\t\t{\n"
    '\t\t\t\t"AutoUpdateWindowEnabled"\t\t"0"\n'
    '\t\t\t\t"CompatToolMapping"\n'
    "\t\t\t\t{\n"
    '\t\t\t\t\t"0"\n'
    "\t\t\t\t\t{\n"
    '\t\t\t\t\t\t"name"\t\t"{version}"\n'
    '\t\t\t\t\t\t"config"\t\t""\n'
    '\t\t\t\t\t\t"Priority"\t\t"75"\n'
    "\t\t\t\t\t}\n"
    '\t\t\t\t\t"1091500"\n'
    "\t\t\t\t\t{\n"
    '\t\t\t\t\t\t"name"\t\t"proton_63"\n'
    '\t\t\t\t\t\t"config"\t\t""\n'
    '\t\t\t\t\t\t"Priority"\t\t"250"\n'
    "\t\t\t\t\t}\n"
    "\t\t\t\t}\n"
    "\t\t\t}\n"
    "\t\t}\n"
    "\t}\n"
    "}\n"
)

LUTRIS_CONFIG_TEMPLATE = (
    "wine:\n"
    "  version: {version}\n"
    "  dxvk: true\n"
    "system:\n"
    "  disable_runtime: false\n"
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond tmp_path")
    config.addinivalue_line("markers", "integration: tests spanning several components")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point XDG directories and platformdirs at a fresh temporary layout for every test.

    STEAM_PATH and GITHUB_TOKEN are removed so the host machine cannot leak into tests.
    """
    base = tmp_path_factory.mktemp("ge_man")
    state_dir = base / "state"
    config_dir = base / "config"
    data_dir = base / "data"

    for path in (state_dir, config_dir, data_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_STATE_HOME", str(state_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))
    monkeypatch.delenv("STEAM_PATH", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    monkeypatch.setattr(
        platformdirs, "user_state_dir", lambda *_args, **_kwargs: str(state_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_data_dir", lambda *_args, **_kwargs: str(data_dir)
    )


@pytest.fixture(autouse=True)
def _block_requests(monkeypatch):
    """Replace the requests entry points with a blocker for the duration of each test."""
    monkeypatch.setattr(requests, "get", _block_network)
    monkeypatch.setattr(requests.Session, "request", _block_network)


@pytest.fixture
def paths():
    """A PathConfiguration rooted in the isolated XDG directories."""
    from geman.paths import PathConfiguration

    return PathConfiguration.from_environment()


@pytest.fixture
def make_tar():
    """
    Provide a factory building compressed tar archives in memory.

    The factory takes a list of entries, each a `(name, content)` pair where a
    `None` content marks a directory, and a compression ("gz" or "xz").
    """

    def _make_tar(entries, compression="gz"):
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode=f"w:{compression}") as tar:
            for name, content in entries:
                info = tarfile.TarInfo(name)
                if content is None:
                    info.type = tarfile.DIRTYPE
                    info.mode = 0o755
                    tar.addfile(info)
                else:
                    info.size = len(content)
                    info.mode = 0o644
                    tar.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return _make_tar


@pytest.fixture
def proton_archive(make_tar):
    """A small gzip archive laid out like a GE-Proton release."""
    return make_tar(
        [
            ("GE-Proton7-22/", None),
            ("GE-Proton7-22/proton", b"#!/usr/bin/env python3\n"),
            ("GE-Proton7-22/files/", None),
            ("GE-Proton7-22/files/version", b"GE-Proton7-22\n"),
            ("GE-Proton7-22/user_settings.sample.py", b"user_settings = {}\n"),
        ],
        compression="gz",
    )


@pytest.fixture
def wine_archive(make_tar):
    """A small xz archive laid out like a Wine-GE release."""
    return make_tar(
        [
            ("lutris-GE-Proton7-8-x86_64/", None),
            ("lutris-GE-Proton7-8-x86_64/bin/", None),
            ("lutris-GE-Proton7-8-x86_64/bin/wine", b"ELF"),
        ],
        compression="xz",
    )


@pytest.fixture
def steam_config_text():
    """Factory for config.vdf contents with the given default compatibility tool."""
    return lambda version: STEAM_CONFIG_TEMPLATE.replace("{version}", version)


@pytest.fixture
def lutris_config_text():
    """Factory for Lutris wine.yml contents with the given Wine version."""
    return lambda version: LUTRIS_CONFIG_TEMPLATE.format(version=version)


@pytest.fixture
def sample_release_data():
    """GitHub release JSON for a Proton release with archive and checksum assets."""
    return {
        "tag_name": "GE-Proton7-22",
        "assets": [
            {
                "name": "GE-Proton7-22.sha512sum",
                "browser_download_url": "https://example.com/GE-Proton7-22.sha512sum",
                "content_type": "application/octet-stream",
                "size": 155,
            },
            {
                "name": "GE-Proton7-22.tar.gz",
                "browser_download_url": "https://example.com/GE-Proton7-22.tar.gz",
                "content_type": "application/gzip",
                "size": 409000000,
            },
        ],
    }
