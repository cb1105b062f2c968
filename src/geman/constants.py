"""
Constants and configuration values for GE-Man.

This module contains the hardcoded URLs, file names, config markers and other
constants used throughout the application.
"""

# GitHub endpoints for the GloriousEggroll repositories
GITHUB_API_BASE = "https://api.github.com/repos"
PROTON_GE_REPO_URL = f"{GITHUB_API_BASE}/GloriousEggroll/proton-ge-custom"
WINE_GE_REPO_URL = f"{GITHUB_API_BASE}/GloriousEggroll/wine-ge-custom"
PROTON_GE_LATEST_RELEASE_URL = f"{PROTON_GE_REPO_URL}/releases/latest"
PROTON_GE_RELEASE_BY_TAG_URL = f"{PROTON_GE_REPO_URL}/releases/tags/{{tag}}"
WINE_GE_RELEASE_BY_TAG_URL = f"{WINE_GE_REPO_URL}/releases/tags/{{tag}}"
WINE_GE_TAGS_URL = f"{WINE_GE_REPO_URL}/tags"

GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
GITHUB_API_TIMEOUT = 10
ASSET_DOWNLOAD_TIMEOUT = 300
LOW_RATE_LIMIT_THRESHOLD = 10
FIRST_TAGS_PAGE = 1

# Asset content types published by upstream
TAR_GZ_CONTENT_TYPE = "application/gzip"
TAR_XZ_CONTENT_TYPE = "application/x-xz"
ARCHIVE_CONTENT_TYPES = (TAR_GZ_CONTENT_TYPE, TAR_XZ_CONTENT_TYPE)
CHECKSUM_CONTENT_TYPE = "application/octet-stream"

# Tag markers carried into derived semver strings
RELEASE_CANDIDATE_MARKER = "rc"
TAG_SUFFIX_MARKERS = ("LoL", "MF")
SEMVER_COMPONENT_COUNT = 3

# Labels
LABEL_MAX_LENGTH = 100
LABEL_COUNTER_SEPARATOR = "_"

# Program directories and files
APP_DIR_NAME = "ge_man"
MANAGED_VERSIONS_FILE = "managed_versions.json"
SETTINGS_FILE_NAME = "config.yml"
STEAM_CONFIG_BACKUP_FILE = "steam-config-backup.vdf"
LUTRIS_CONFIG_BACKUP_FILE = "lutris-wine-runner-config-backup.yml"
LOG_DIR_NAME = "log"

# Host application layout
STEAM_PATH_ENV_VAR = "STEAM_PATH"
STEAM_DIR_NAME = "Steam"
STEAM_TOOLS_DIR_NAME = "compatibilitytools.d"
STEAM_CONFIG_RELATIVE_PATH = "config/config.vdf"
LUTRIS_RUNNERS_RELATIVE_DIR = "lutris/runners/wine"
LUTRIS_CONFIG_RELATIVE_PATH = "lutris/runners/wine.yml"
PROTON_USER_SETTINGS_FILE = "user_settings.py"

# Config file markers
STEAM_COMPAT_TOOL_MAPPING_KEY = "CompatToolMapping"
STEAM_DEFAULT_APP_ID_KEY = '"0"'
STEAM_VALUE_LINE_OFFSET = 2
LUTRIS_VERSION_KEY = "version"
LUTRIS_VALUE_SEPARATOR = ": "
LUTRIS_CONFIG_TEMPLATE = "wine:\n  version: {version}\n"

# Migration
MIGRATED_DIR_PREFIX = "GE-MAN"

# Settings keys
SETTINGS_STEAM_ROOT_PATH = "STEAM_ROOT_PATH"
SETTINGS_LEGACY_STEAM_ROOT_PATH = "steam_root_path"
SETTINGS_LOG_LEVEL = "LOG_LEVEL"
SETTINGS_GITHUB_TOKEN = "GITHUB_TOKEN"
SETTINGS_ALLOW_ENV_TOKEN = "ALLOW_ENV_TOKEN"
ENV_VAR_REFERENCE_PATTERN = r"(\$([A-Za-z0-9_]+))"

# Logging
LOGGER_NAME = "ge_man"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "ge_man.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
LOG_LEVEL_ENV_VAR = "GE_MAN_LOG_LEVEL"
