"""Persisted record of what shhh has set up on this machine."""

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from shhh.modules.errors import ShhhError


class StateError(ShhhError):
    """The state file could not be read or written."""


class State(BaseModel):
    """
    What previous runs have applied.

    Steps consult it so that their checks reflect durable state; the engine
    itself never looks inside.
    """

    installed_modules: List[str] = Field(default_factory=list)
    last_run: Optional[datetime] = None
    managed_env_vars: List[str] = Field(default_factory=list)
    managed_path_entries: List[str] = Field(default_factory=list)
    scoop_packages: List[str] = Field(default_factory=list)
    ca_bundle_hash: str = ""
    shhh_version: str = ""

    def add_module(self, module_id: str) -> None:
        _append_unique(self.installed_modules, module_id)

    def add_env_var(self, key: str) -> None:
        _append_unique(self.managed_env_vars, key)

    def add_path_entry(self, directory: str) -> None:
        _append_unique(self.managed_path_entries, directory)

    def add_scoop_package(self, package: str) -> None:
        _append_unique(self.scoop_packages, package)


def _append_unique(items: List[str], item: str) -> None:
    if item not in items:
        items.append(item)


def load_state(path: Path) -> State:
    """
    Load state from disk.

    A missing file yields an empty state.

    Raises:
        StateError: If the file exists but cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        return State()
    try:
        return State.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        raise StateError(f"reading state {path}: {e}") from e


def save_state(path: Path, state: State) -> None:
    """Write state to disk atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = state.model_dump_json(indent=2)

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=".state-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp_path, path)
    except OSError as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise StateError(f"writing state {path}: {e}") from e
