"""Shared pytest fixtures and configuration."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import NameOID

from shhh.config import Config
from shhh.modules.base import Category, Module, Step
from shhh.modules.registry import ModuleRegistry
from shhh.modules.setup import SetupDependencies
from shhh.process import CommandError, CommandResult, CommandRunner
from shhh.state import State
from shhh.system import (
    Certificate,
    CertStore,
    EnvSource,
    PathEntry,
    ProfileManager,
    UserEnv,
)
from shhh.system.profile_block import extract_managed_block, replace_managed_block


class InMemoryUserEnv(UserEnv):
    """User environment kept in a dict."""

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}
        self.path: List[str] = []

    def get(self, key: str) -> Tuple[str, EnvSource]:
        return self.values[key], EnvSource.USER

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def append_path(self, directory: str) -> None:
        if directory not in self.path:
            self.path.append(directory)

    def remove_path(self, directory: str) -> None:
        self.path = [d for d in self.path if d != directory]

    def list_path(self) -> List[PathEntry]:
        return [PathEntry(dir=d, source=EnvSource.USER, exists=True) for d in self.path]


class InMemoryProfileManager(ProfileManager):
    """Profile kept in a string."""

    def __init__(self, content: str = "") -> None:
        self.content = content

    @property
    def path(self) -> str:
        return "profile.ps1"

    def read(self) -> str:
        return self.content

    def managed_block(self) -> str:
        return extract_managed_block(self.content)

    def set_managed_block(self, content: str) -> None:
        self.content = replace_managed_block(self.content, content)

    def append_to_managed_block(self, line: str) -> None:
        current = self.managed_block()
        self.set_managed_block(f"{current}\n{line}" if current else line)

    def diff(self) -> str:
        return ""

    def exists(self) -> bool:
        return True

    def ensure_exists(self) -> None:
        pass


def make_certificate(common_name: str = "Test Root CA") -> Certificate:
    """A freshly generated self-signed certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    return Certificate(der=cert.public_bytes(Encoding.DER))


class FakeCertStore(CertStore):
    def __init__(self, certs: Optional[List[Certificate]] = None) -> None:
        self.certs = list(certs or [])

    def system_roots(self) -> List[Certificate]:
        return list(self.certs)


class FakeCommandRunner(CommandRunner):
    """
    Scripted command runner.

    Results are keyed by the full command line ("git config --global x").
    Unknown commands fail as if the executable were missing.
    """

    def __init__(self, results: Optional[Dict[str, CommandResult]] = None) -> None:
        self.results: Dict[str, CommandResult] = dict(results or {})
        self.calls: List[str] = []

    def set(self, command: str, stdout: str = "", exit_code: int = 0) -> None:
        self.results[command] = CommandResult(stdout=stdout, exit_code=exit_code)

    def run(self, name: str, *args: str) -> CommandResult:
        command = " ".join((name,) + args)
        self.calls.append(command)
        result = self.results.get(command)
        if result is None:
            raise CommandError(command, "executable not found")
        if result.exit_code != 0:
            raise CommandError(command, f"exit code {result.exit_code}", result)
        return result


def make_step(name: str, log: List[str], satisfied: bool = False, fail: bool = False) -> Step:
    """A step that records its calls into ``log``."""

    def apply() -> None:
        log.append(f"apply:{name}")
        if fail:
            raise RuntimeError(f"{name} broke")

    def check() -> bool:
        log.append(f"check:{name}")
        return satisfied

    return Step(
        name=name,
        apply=apply,
        check=check,
        dry_run=lambda: f"would run {name}",
        explain=f"why {name}",
    )


def make_module(
    module_id: str,
    deps: Optional[List[str]] = None,
    steps=None,
    category: Category = Category.BASE,
) -> Module:
    return Module(
        id=module_id,
        name=module_id.capitalize(),
        category=category,
        dependencies=list(deps or []),
        steps=list(steps or []),
    )


@pytest.fixture
def user_env() -> InMemoryUserEnv:
    return InMemoryUserEnv()


@pytest.fixture
def profile() -> InMemoryProfileManager:
    return InMemoryProfileManager()


@pytest.fixture
def cert_store() -> FakeCertStore:
    return FakeCertStore([make_certificate()])


@pytest.fixture
def command_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def deps(
    tmp_path: Path,
    config: Config,
    user_env: InMemoryUserEnv,
    profile: InMemoryProfileManager,
    cert_store: FakeCertStore,
    command_runner: FakeCommandRunner,
) -> SetupDependencies:
    """Setup dependencies wired to in-memory fakes."""
    return SetupDependencies(
        config=config,
        env=user_env,
        profile=profile,
        cert_store=cert_store,
        runner=command_runner,
        state=State(),
        ca_bundle_path=tmp_path / "ca-bundle.pem",
    )


@pytest.fixture
def diamond_registry() -> ModuleRegistry:
    """base <- (left, right) <- top."""
    registry = ModuleRegistry()
    registry.register(make_module("base"))
    registry.register(make_module("left", ["base"]))
    registry.register(make_module("right", ["base"]))
    registry.register(make_module("top", ["left", "right"]))
    return registry


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Clean environment variables before each test."""
    env_vars = [
        "SHHH_ORG",
        "SHHH_HTTP_PROXY",
        "SHHH_HTTPS_PROXY",
        "SHHH_NO_PROXY",
        "SHHH_PYPI_MIRROR",
        "SHHH_NPM_REGISTRY",
        "SHHH_GO_PROXY",
        "SHHH_CONFIG_FILE",
        "SHHH_VERBOSE",
        "HTTP_PROXY",
        "HTTPS_PROXY",
        "NO_PROXY",
        "SSL_CERT_FILE",
        "REQUESTS_CA_BUNDLE",
        "PIP_CERT",
        "UV_PYTHON_PREFERENCE",
        "UV_INDEX_URL",
        "PIP_INDEX_URL",
        "GOPATH",
        "GOPROXY",
        "NODE_EXTRA_CA_CERTS",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SHHH_CONFIG_DIR", str(tmp_path / "shhh-home"))
    # Steps append to the process PATH; restore it afterwards.
    monkeypatch.setenv("PATH", os.environ.get("PATH", ""))
