"""Base module: proxy variables, CA bundle, Scoop, git and git defaults."""

import hashlib
import os
import tempfile
from pathlib import Path
from typing import List

from shhh.modules.base import Category, Module, Step
from shhh.modules.errors import ShhhError
from shhh.modules.setup._shared import (
    SetupDependencies,
    env_is_exported,
    export_env,
    output_is,
    try_run,
)
from shhh.system.certstore import encode_pem, parse_pem_certificates


def new_base_module(deps: SetupDependencies) -> Module:
    """Create the base module which every other module depends on."""
    steps: List[Step] = []

    proxy = deps.config.proxy
    if proxy.http:
        steps.append(proxy_step(deps, "HTTP_PROXY", proxy.http))
    if proxy.https:
        steps.append(proxy_step(deps, "HTTPS_PROXY", proxy.https))
    if proxy.no_proxy:
        steps.append(proxy_step(deps, "NO_PROXY", proxy.no_proxy))

    steps.append(ca_bundle_step(deps))
    steps.append(install_scoop_step(deps))
    steps.append(install_git_step(deps))
    if deps.config.scoop.buckets:
        steps.append(scoop_buckets_step(deps))
    steps.append(git_ssl_ca_info_step(deps))
    steps.append(git_default_branch_step(deps))

    return Module(
        id="base",
        name="Base",
        description="Configure proxy, certificates, and git defaults",
        category=Category.BASE,
        steps=steps,
    )


def proxy_step(deps: SetupDependencies, key: str, value: str) -> Step:
    """Set a proxy variable in the user environment and the current process."""

    def apply() -> None:
        export_env(deps, key, value)

    return Step(
        name=f"Set {key}",
        description=f"Configure {key} environment variable",
        explain=(
            f"{key} tells tools like git, curl, and pip how to reach the internet through "
            "your corporate proxy. It is stored in your user environment so that new shells "
            "and GUI apps pick it up."
        ),
        check=lambda: env_is_exported(deps, key, value),
        apply=apply,
        dry_run=lambda: f"Would set {key}={value!r} in user environment and current process",
    )


def compute_bundle_hash(deps: SetupDependencies) -> str:
    """
    Hash of the certificates that make up the CA bundle.

    System roots are sorted by DER bytes so store enumeration order does not
    matter; extra files follow in configured order.
    """
    certs = sorted(deps.cert_store.system_roots(), key=lambda c: c.der)
    digest = hashlib.sha256()
    for cert in certs:
        digest.update(cert.der)
    for extra in deps.config.certs.extra:
        try:
            digest.update(Path(extra).read_bytes())
        except OSError as e:
            raise ShhhError(f"reading extra cert file {extra!r}: {e}") from e
    return digest.hexdigest()


def _write_atomic(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix="ca-bundle-", suffix=".pem.tmp")
    try:
        with os.fdopen(fd, "w", encoding="ascii") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def ca_bundle_step(deps: SetupDependencies) -> Step:
    """Extract OS root certificates plus configured extras into one PEM bundle."""
    ca_path = deps.ca_bundle_path

    def check() -> bool:
        if not deps.state.ca_bundle_hash or not ca_path.is_file():
            return False
        try:
            return compute_bundle_hash(deps) == deps.state.ca_bundle_hash
        except ShhhError:
            return False

    def apply() -> None:
        certs = deps.cert_store.system_roots()
        if not certs:
            raise ShhhError("no root certificates found in system store")

        parts = [encode_pem(cert) for cert in certs]
        for extra in deps.config.certs.extra:
            try:
                data = Path(extra).read_text(encoding="ascii")
            except (OSError, UnicodeDecodeError) as e:
                raise ShhhError(f"reading extra cert file {extra!r}: {e}") from e
            if not parse_pem_certificates(data):
                raise ShhhError(f"extra cert file {extra!r} contains no valid PEM data")
            parts.append(data if data.endswith("\n") else data + "\n")

        _write_atomic(ca_path, "".join(parts))
        deps.state.ca_bundle_hash = compute_bundle_hash(deps)

        # pip, curl and friends read SSL_CERT_FILE.
        export_env(deps, "SSL_CERT_FILE", str(ca_path))

    def dry_run() -> str:
        try:
            count = len(deps.cert_store.system_roots())
        except ShhhError:
            count = 0
        return f"Would extract {count} certs from system store and write to {ca_path}"

    return Step(
        name="Build CA bundle",
        description="Extract OS root certificates and write PEM bundle",
        explain=(
            "Corporate networks often use TLS-intercepting proxies with custom root "
            "certificates. Most dev tools (git, pip, npm, curl) need a PEM file with these "
            "certificates to verify HTTPS connections, so we bundle them from your OS "
            "certificate store into a single file."
        ),
        check=check,
        apply=apply,
        dry_run=dry_run,
    )


def install_scoop_step(deps: SetupDependencies) -> Step:
    """Install the Scoop package manager into the user profile."""

    def apply() -> None:
        deps.runner.run(
            "powershell",
            "-NoProfile",
            "-Command",
            "Set-ExecutionPolicy RemoteSigned -Scope CurrentUser -Force; irm get.scoop.sh | iex",
        )
        shims = str(Path.home() / "scoop" / "shims")
        os.environ["PATH"] = shims + os.pathsep + os.environ.get("PATH", "")
        deps.state.add_path_entry(shims)

    return Step(
        name="Install Scoop",
        description="Install Scoop package manager",
        explain="Scoop installs programs to your user directory without admin privileges.",
        check=lambda: try_run(deps, "scoop", "--version") is not None,
        apply=apply,
        dry_run=lambda: "Would install Scoop package manager via get.scoop.sh",
    )


def install_git_step(deps: SetupDependencies) -> Step:
    """Install git early; Scoop needs it for buckets and later steps configure it."""

    def apply() -> None:
        deps.runner.run("scoop", "install", "git")
        deps.state.add_scoop_package("git")

    return Step(
        name="Install git",
        description="Install git via Scoop",
        explain=(
            "Git is required by Scoop to manage bucket repositories, and by almost every "
            "development workflow."
        ),
        check=lambda: try_run(deps, "git", "--version") is not None,
        apply=apply,
        dry_run=lambda: "Would install git via scoop",
    )


def scoop_buckets_step(deps: SetupDependencies) -> Step:
    buckets = list(deps.config.scoop.buckets)

    def check() -> bool:
        result = try_run(deps, "scoop", "bucket", "list")
        if result is None:
            return False
        return all(bucket in result.stdout for bucket in buckets)

    def apply() -> None:
        result = try_run(deps, "scoop", "bucket", "list")
        existing = result.stdout if result is not None else ""
        for bucket in buckets:
            if bucket in existing:
                continue
            deps.runner.run("scoop", "bucket", "add", bucket)

    return Step(
        name="Add Scoop buckets",
        description="Add Scoop buckets to expand available packages",
        explain="Scoop buckets expand the pool of installable software.",
        check=check,
        apply=apply,
        dry_run=lambda: f"Would add Scoop buckets: {', '.join(buckets)}",
    )


def git_ssl_ca_info_step(deps: SetupDependencies) -> Step:
    ca_path = str(deps.ca_bundle_path)

    return Step(
        name="Set git ssl.caInfo",
        description="Point git at the shhh CA bundle",
        explain=(
            "Git needs to know where to find your organization's CA certificates to verify "
            "HTTPS connections. We point it at the shhh-managed CA bundle."
        ),
        check=lambda: output_is(
            try_run(deps, "git", "config", "--global", "http.sslCAInfo"), ca_path
        ),
        apply=lambda: deps.runner.run("git", "config", "--global", "http.sslCAInfo", ca_path),
        dry_run=lambda: f"Would run: git config --global http.sslCAInfo {ca_path}",
    )


def git_default_branch_step(deps: SetupDependencies) -> Step:
    branch = deps.config.git.default_branch or "main"

    return Step(
        name="Set git default branch",
        description=f"Set git init.defaultBranch to {branch}",
        explain=(
            "When you run 'git init', git creates an initial branch. This sets the default "
            "name for that branch."
        ),
        check=lambda: output_is(
            try_run(deps, "git", "config", "--global", "init.defaultBranch"), branch
        ),
        apply=lambda: deps.runner.run("git", "config", "--global", "init.defaultBranch", branch),
        dry_run=lambda: f"Would run: git config --global init.defaultBranch {branch}",
    )
