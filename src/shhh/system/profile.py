"""Shell profile backends."""

import difflib
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

from shhh.system.base import NotSupportedError, ProfileManager
from shhh.system.profile_block import extract_managed_block, replace_managed_block


def powershell_profile_path() -> Path:
    """Location of the current user's PowerShell 7 profile."""
    documents = Path(os.environ.get("USERPROFILE", str(Path.home()))) / "Documents"
    return documents / "PowerShell" / "Microsoft.PowerShell_profile.ps1"


class FileProfileManager(ProfileManager):
    """
    Profile stored as a text file on disk.

    Writes go to a temporary file in the same directory that then replaces
    the profile, so a crash never leaves a half-written profile behind.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._pending: Optional[str] = None

    @property
    def path(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.is_file()

    def ensure_exists(self) -> None:
        if self.exists():
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch()

    def read(self) -> str:
        if not self.exists():
            return ""
        return self._path.read_text(encoding="utf-8")

    def managed_block(self) -> str:
        return extract_managed_block(self.read())

    def set_managed_block(self, content: str) -> None:
        self.ensure_exists()
        self._write(replace_managed_block(self.read(), content))

    def append_to_managed_block(self, line: str) -> None:
        current = self.managed_block()
        self.set_managed_block(f"{current}\n{line}" if current else line)

    def diff(self) -> str:
        """Unified diff between the profile on disk and its last written state."""
        if self._pending is None:
            return ""
        current = self.read()
        return "".join(
            difflib.unified_diff(
                current.splitlines(keepends=True),
                self._pending.splitlines(keepends=True),
                fromfile=f"{self.path} (on disk)",
                tofile=f"{self.path} (shhh)",
            )
        )

    def _write(self, content: str) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=".profile-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, self._path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        self._pending = content


class UnsupportedProfileManager(ProfileManager):
    """Placeholder for platforms without a managed shell profile."""

    @property
    def path(self) -> str:
        return ""

    def read(self) -> str:
        raise NotSupportedError("shell profile")

    def managed_block(self) -> str:
        raise NotSupportedError("shell profile")

    def set_managed_block(self, content: str) -> None:
        raise NotSupportedError("shell profile")

    def append_to_managed_block(self, line: str) -> None:
        raise NotSupportedError("shell profile")

    def diff(self) -> str:
        raise NotSupportedError("shell profile")

    def exists(self) -> bool:
        return False

    def ensure_exists(self) -> None:
        raise NotSupportedError("shell profile")


def new_profile_manager() -> ProfileManager:
    """Create the profile backend for the running platform."""
    if sys.platform == "win32":
        return FileProfileManager(powershell_profile_path())
    return UnsupportedProfileManager()
