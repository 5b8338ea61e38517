"""Running external commands."""

import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from shhh.modules.errors import ShhhError


@dataclass(frozen=True)
class CommandResult:
    """Captured output and exit code of a command."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class CommandError(ShhhError):
    """A command could not be started or exited with a non-zero code."""

    def __init__(self, command: str, message: str, result: Optional[CommandResult] = None):
        self.command = command
        self.result = result or CommandResult(exit_code=-1)
        super().__init__(f'command "{command}" failed: {message}')


class CommandRunner(ABC):
    """Executes external commands synchronously."""

    @abstractmethod
    def run(self, name: str, *args: str) -> CommandResult:
        """
        Run a command and capture its output.

        Raises:
            CommandError: If the command is missing, times out or exits non-zero
        """


class SubprocessRunner(CommandRunner):
    """Runs commands on the real system."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds before a command is killed (None waits forever)
        """
        self.timeout = timeout

    def run(self, name: str, *args: str) -> CommandResult:
        command = " ".join((name,) + args)
        try:
            completed = subprocess.run(
                [name, *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise CommandError(command, "executable not found") from None
        except subprocess.TimeoutExpired:
            raise CommandError(command, f"timed out after {self.timeout}s") from None

        result = CommandResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )
        if completed.returncode != 0:
            raise CommandError(
                command,
                f"exit code {completed.returncode}\nstderr: {result.stderr}",
                result,
            )
        return result


def command_exists(name: str) -> bool:
    """Check whether a command is available on PATH."""
    return shutil.which(name) is not None
