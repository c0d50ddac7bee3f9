"""
Common configuration settings used throughout the application.

This module contains globally shared configuration settings and constants that are
used across the whole Sonic Tools service. It centralizes parameters for logging,
scratch file management, the external FFmpeg engine, and response packaging.
It also handles the loading of user-specific configuration from an external
YAML file, allowing for easy customization without modifying the source code.
"""
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

# --- User-Defined Configuration ---
# This block loads user-specific settings from a 'config.user.yaml' file located
# at the project root. It lets operators point the service at a specific FFmpeg
# build, a RAM disk for scratch files, or a directory for error reports.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"


def load_user_config(config_path: Path = USER_CONFIG_PATH) -> Dict[str, Any]:
    """
    Reads the user configuration file and returns its content as a dictionary.

    A missing file is not an error: the service then relies on the system PATH
    for the FFmpeg executables and on the system temporary directory for scratch
    files. A file that cannot be parsed is reported and ignored.

    Args:
        config_path: The location of the YAML file to read.

    Returns:
        The parsed mapping, or an empty dictionary when nothing usable was found.
    """
    if not config_path.is_file():
        logger.debug(f"User config '{config_path}' not found. Using built-in defaults.")
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{config_path}': {e}")
        return {}
    if not isinstance(user_config, dict):
        logger.warning(f"Ignoring '{config_path}': expected a mapping at the top level.")
        return {}
    return user_config


def _optional_path(value: Any) -> Optional[Path]:
    return Path(value) if value else None


_user_config = load_user_config()
_paths_config = _user_config.get("paths") or {}
_engine_config = _user_config.get("engine") or {}
_logging_config = _user_config.get("logging") or {}

# The directory containing the FFmpeg and ffprobe executables. If not provided,
# the executables are assumed to be available in the system's PATH.
MODULE_PATH: Optional[Path] = _optional_path(_paths_config.get("ffmpeg_dir"))

# Where scratch workspaces are created. None means the system temporary directory.
TEMP_WORK_DIR: Optional[Path] = _optional_path(_paths_config.get("temp_work_dir"))

# Where `error.txt` reports for failed engine invocations are appended.
# None disables the report file; failures are still logged.
ERROR_LOG_DIR: Optional[Path] = _optional_path(_paths_config.get("error_log_dir"))

# Wall-clock limit for a single engine process, in seconds. The process is
# killed on expiry. None means no limit.
ENGINE_TIMEOUT_SECONDS: Optional[float] = _engine_config.get("timeout_seconds")


# --- Logging Configuration ---

LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{process} - <level>{message}</level>"
)

LOG_LEVEL: str = str(_logging_config.get("level") or "INFO").upper()

# Optional file sink in addition to stderr.
LOG_FILE: Optional[Path] = _optional_path(_logging_config.get("log_file"))


# --- Scratch Files ---

# Prefix for scratch directories and files, so leftovers are easy to spot.
SCRATCH_PREFIX = "sonic_"


# --- Requests and Responses ---

# Name used for a file whose name was not supplied by the caller.
DEFAULT_OUTPUT_FILENAME = "output"

# Target format assumed when an input filename carries no extension.
DEFAULT_AUDIO_FORMAT = "mp3"

# Filename and format tag of the archive returned for multi-file results.
BUNDLE_FILENAME = "sonic-tools.zip"
BUNDLE_FORMAT = "zip"

# Upload limits enforced by the host before a request reaches the pipeline.
MAX_FILES = 10
MAX_UPLOAD_SIZE = 50 * 1024 * 1024
