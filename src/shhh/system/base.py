"""Interfaces for the operating-system capabilities setup steps rely on."""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from shhh.modules.errors import ShhhError

MANAGED_BLOCK_START = "# >>> shhh managed - do not edit >>>"
MANAGED_BLOCK_END = "# <<< shhh managed <<<"


class NotSupportedError(ShhhError):
    """The capability is not available on this platform."""

    def __init__(self, what: str = "operation"):
        super().__init__(f"{what} not supported on this platform")


class EnvSource(Enum):
    """Where an environment value was found."""

    PROCESS = "process"
    USER = "user"
    SYSTEM = "system"


@dataclass(frozen=True)
class PathEntry:
    """One directory from a PATH-like list."""

    dir: str
    source: EnvSource
    exists: bool


@dataclass(frozen=True)
class Certificate:
    """A trusted root certificate in DER form."""

    der: bytes

    @property
    def fingerprint(self) -> str:
        return hashlib.sha256(self.der).hexdigest()


class UserEnv(ABC):
    """Persistent per-user environment variables and PATH."""

    @abstractmethod
    def get(self, key: str) -> Tuple[str, EnvSource]:
        """
        Look up a variable.

        Raises:
            KeyError: If the variable is not set
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def append_path(self, directory: str) -> None:
        """Append a directory to the persistent PATH, ignoring duplicates."""

    @abstractmethod
    def remove_path(self, directory: str) -> None:
        pass

    @abstractmethod
    def list_path(self) -> List[PathEntry]:
        pass


class ProfileManager(ABC):
    """
    A user's shell startup file with one block managed by shhh.

    Content outside the managed block is never touched.
    """

    @property
    @abstractmethod
    def path(self) -> str:
        pass

    @abstractmethod
    def read(self) -> str:
        pass

    @abstractmethod
    def managed_block(self) -> str:
        """Content of the managed block, or "" if there is none."""

    @abstractmethod
    def set_managed_block(self, content: str) -> None:
        pass

    @abstractmethod
    def append_to_managed_block(self, line: str) -> None:
        pass

    @abstractmethod
    def diff(self) -> str:
        pass

    @abstractmethod
    def exists(self) -> bool:
        pass

    @abstractmethod
    def ensure_exists(self) -> None:
        pass


class CertStore(ABC):
    """Source of the operating system's trusted root certificates."""

    @abstractmethod
    def system_roots(self) -> List[Certificate]:
        pass
