"""
Configuration management for aw-watcher-window-installer.
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "installer.yaml"

# Default configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    "watcher": {
        "executable_name": "aw-watcher-window-rs.exe",
        "host": "localhost",
        "port": 5600,
        # Pass-through watcher options, omitted from the command line when empty
        "exclude_title_processes": [],
        "include_title_processes": [],
        "poll_time": None,  # milliseconds
        "debug": False,
    },
    "task": {
        "name_prefix": "aw-watcher-window-rs_",
        "run_level": "limited",  # "limited" or "highest"
        "description": "Starts the ActivityWatch window watcher at logon",
    },
    "server_check": {
        "enabled": True,
        "timeout": 3.0,
    },
}


@dataclass
class InstallConfig:
    """Everything needed to build the scheduled task for one user."""

    username: str
    executable_path: str
    hostname: str = "localhost"
    port: int = 5600
    exclude_title: bool = True
    exclude_title_processes: List[str] = field(default_factory=list)
    include_title_processes: List[str] = field(default_factory=list)
    poll_time: Optional[int] = None
    debug: bool = False


def get_config_dir() -> Path:
    """Get the configuration directory for aw-watcher-window-installer."""
    if os.name == "nt":  # Windows
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif os.name == "posix":
        if "darwin" in os.uname().sysname.lower():  # macOS
            base = Path.home() / "Library" / "Application Support"
        else:  # Linux
            base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    else:
        base = Path.home()

    config_dir = base / "activitywatch" / "aw-watcher-window-installer"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_log_dir() -> Path:
    """Get the log directory shared with the other ActivityWatch components."""
    if os.name == "nt":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    else:
        base = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))

    log_dir = base / "activitywatch" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Without an explicit path the per-user ``installer.yaml`` is used and
    created with the defaults if it is missing. An explicit path is only read.
    """
    create_missing = config_file is None
    if config_file is None:
        config_file = get_config_dir() / CONFIG_FILE_NAME

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_file.exists():
        try:
            with open(config_file, "r") as f:
                user_config = yaml.safe_load(f)

            if user_config:
                # Deep merge user config into defaults
                config = deep_merge(config, user_config)
                logger.info(f"Loaded config from {config_file}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config: {e}")
    elif create_missing:
        try:
            with open(config_file, "w") as f:
                yaml.dump(DEFAULT_CONFIG, f, default_flow_style=False)
            logger.info(f"Created default config at {config_file}")
        except OSError as e:
            logger.warning(f"Could not create default config: {e}")
    else:
        logger.warning(f"Config file {config_file} not found, using defaults")

    return config


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result
