"""On-disk locations used by shhh."""

import os
import sys
from pathlib import Path

CONFIG_FILE_NAME = "shhh.yaml"


def config_dir() -> Path:
    """Directory holding config, state, logs and the CA bundle."""
    override = os.getenv("SHHH_CONFIG_DIR")
    if override:
        return Path(override)
    return Path.home() / ".config" / "shhh"


def config_file_path() -> Path:
    """Config file next to the executable if present, otherwise in the config dir."""
    executable = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    if executable is not None:
        adjacent = executable.resolve().parent / CONFIG_FILE_NAME
        if adjacent.is_file():
            return adjacent
    return config_dir() / CONFIG_FILE_NAME


def state_file_path() -> Path:
    return config_dir() / "state.json"


def log_file_path() -> Path:
    return config_dir() / "shhh.log"


def ca_bundle_path() -> Path:
    return config_dir() / "ca-bundle.pem"
