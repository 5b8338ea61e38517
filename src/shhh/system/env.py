"""Persistent user environment backends."""

import os
import sys
from typing import List, Tuple

from shhh.system.base import EnvSource, NotSupportedError, PathEntry, UserEnv

_ENV_KEY = "Environment"


class WindowsUserEnv(UserEnv):
    """User environment stored under HKEY_CURRENT_USER\\Environment."""

    def __init__(self) -> None:
        import winreg

        self._winreg = winreg

    def _open(self, access: int):
        return self._winreg.OpenKey(self._winreg.HKEY_CURRENT_USER, _ENV_KEY, 0, access)

    def get(self, key: str) -> Tuple[str, EnvSource]:
        try:
            with self._open(self._winreg.KEY_READ) as handle:
                value, _ = self._winreg.QueryValueEx(handle, key)
        except FileNotFoundError:
            raise KeyError(key) from None
        return str(value), EnvSource.USER

    def set(self, key: str, value: str) -> None:
        kind = self._winreg.REG_EXPAND_SZ if "%" in value else self._winreg.REG_SZ
        with self._open(self._winreg.KEY_SET_VALUE) as handle:
            self._winreg.SetValueEx(handle, key, 0, kind, value)

    def delete(self, key: str) -> None:
        try:
            with self._open(self._winreg.KEY_SET_VALUE) as handle:
                self._winreg.DeleteValue(handle, key)
        except FileNotFoundError:
            pass

    def _user_path(self) -> List[str]:
        try:
            value, _ = self.get("Path")
        except KeyError:
            return []
        return [d for d in value.split(os.pathsep) if d]

    def _write_path(self, dirs: List[str]) -> None:
        with self._open(self._winreg.KEY_SET_VALUE) as handle:
            self._winreg.SetValueEx(
                handle, "Path", 0, self._winreg.REG_EXPAND_SZ, os.pathsep.join(dirs)
            )

    def append_path(self, directory: str) -> None:
        dirs = self._user_path()
        if directory in dirs:
            return
        dirs.append(directory)
        self._write_path(dirs)
        # Children spawned later in this run only see the process PATH.
        process_dirs = os.environ.get("PATH", "").split(os.pathsep)
        if directory not in process_dirs:
            os.environ["PATH"] = os.pathsep.join([d for d in process_dirs if d] + [directory])

    def remove_path(self, directory: str) -> None:
        dirs = self._user_path()
        if directory not in dirs:
            return
        self._write_path([d for d in dirs if d != directory])

    def list_path(self) -> List[PathEntry]:
        return [
            PathEntry(
                dir=d,
                source=EnvSource.USER,
                exists=os.path.isdir(os.path.expandvars(d)),
            )
            for d in self._user_path()
        ]


class UnsupportedUserEnv(UserEnv):
    """Placeholder for platforms without a persistent user environment store."""

    def get(self, key: str) -> Tuple[str, EnvSource]:
        raise NotSupportedError("user environment")

    def set(self, key: str, value: str) -> None:
        raise NotSupportedError("user environment")

    def delete(self, key: str) -> None:
        raise NotSupportedError("user environment")

    def append_path(self, directory: str) -> None:
        raise NotSupportedError("user PATH")

    def remove_path(self, directory: str) -> None:
        raise NotSupportedError("user PATH")

    def list_path(self) -> List[PathEntry]:
        raise NotSupportedError("user PATH")


def new_user_env() -> UserEnv:
    """Create the user environment backend for the running platform."""
    if sys.platform == "win32":
        return WindowsUserEnv()
    return UnsupportedUserEnv()
