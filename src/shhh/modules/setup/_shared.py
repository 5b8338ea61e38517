"""Dependencies and helpers shared by the setup modules."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from shhh.config import Config
from shhh.modules.errors import ShhhError
from shhh.paths import ca_bundle_path
from shhh.process import CommandError, CommandResult, CommandRunner
from shhh.state import State
from shhh.system import CertStore, ProfileManager, UserEnv


@dataclass
class SetupDependencies:
    """Collaborators a setup step may close over."""

    config: Config
    env: UserEnv
    profile: ProfileManager
    cert_store: CertStore
    runner: CommandRunner
    state: State
    ca_bundle_path: Path = field(default_factory=ca_bundle_path)


def user_value(deps: SetupDependencies, key: str) -> Optional[str]:
    """Persisted value of a user variable, or None if unset or unreadable."""
    try:
        value, _ = deps.env.get(key)
    except (KeyError, OSError, ShhhError):
        return None
    return value


def env_is_exported(deps: SetupDependencies, key: str, value: str) -> bool:
    """True when ``key`` holds ``value`` both persistently and in this process."""
    return user_value(deps, key) == value and os.environ.get(key) == value


def export_env(deps: SetupDependencies, key: str, value: str) -> None:
    """
    Persist a user variable and export it into this process.

    Later steps spawn child processes that only inherit the process
    environment, so both writes must happen before the step returns.
    """
    deps.env.set(key, value)
    os.environ[key] = value
    deps.state.add_env_var(key)


def try_run(deps: SetupDependencies, name: str, *args: str) -> Optional[CommandResult]:
    """Run a command for a check; None if it fails."""
    try:
        return deps.runner.run(name, *args)
    except CommandError:
        return None


def output_is(result: Optional[CommandResult], expected: str) -> bool:
    return result is not None and result.stdout.strip() == expected
