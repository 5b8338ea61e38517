"""Node.js module: fnm, shell integration, Node itself and npm settings."""

import os
from typing import List

from shhh.modules.base import Category, Module, Step
from shhh.modules.errors import ShhhError
from shhh.modules.setup._shared import (
    SetupDependencies,
    export_env,
    output_is,
    try_run,
    user_value,
)

FNM_INIT_LINE = "fnm env --use-on-cd --shell power-shell | Out-String | Invoke-Expression"


def new_node_module(deps: SetupDependencies) -> Module:
    steps: List[Step] = [
        install_fnm_step(deps),
        configure_fnm_shell_step(deps),
        install_node_step(deps),
        configure_node_certs_step(deps),
    ]
    if deps.config.registries.npm_registry:
        steps.append(configure_npm_registry_step(deps))

    return Module(
        id="node",
        name="Node.js",
        description="Install Node.js via fnm and configure npm registry",
        category=Category.LANGUAGE,
        dependencies=["base"],
        steps=steps,
    )


def _npm(deps: SetupDependencies, *args: str) -> List[str]:
    """fnm-wrapped npm invocation pinned to the configured Node version."""
    return ["fnm", "exec", "--using", deps.config.node.version, "--", "npm", *args]


def install_fnm_step(deps: SetupDependencies) -> Step:
    def apply() -> None:
        deps.runner.run("scoop", "install", "fnm")
        deps.state.add_scoop_package("fnm")

    return Step(
        name="Install fnm",
        description="Install fnm Node.js version manager via Scoop",
        explain="fnm (Fast Node Manager) installs and switches between Node.js versions.",
        check=lambda: try_run(deps, "fnm", "--version") is not None,
        apply=apply,
        dry_run=lambda: "Would install fnm via scoop",
    )


def configure_fnm_shell_step(deps: SetupDependencies) -> Step:
    def check() -> bool:
        try:
            return "fnm env" in deps.profile.managed_block()
        except (OSError, ShhhError):
            return False

    return Step(
        name="Configure fnm shell",
        description="Add fnm shell initialization to PowerShell profile",
        explain=(
            "This adds fnm's shell integration so that Node.js versions are activated "
            "automatically."
        ),
        check=check,
        apply=lambda: deps.profile.append_to_managed_block(FNM_INIT_LINE),
        dry_run=lambda: "Would add fnm shell initialization to PowerShell profile",
    )


def install_node_step(deps: SetupDependencies) -> Step:
    version = deps.config.node.version

    def check() -> bool:
        result = try_run(deps, "fnm", "list")
        return result is not None and version in result.stdout

    def apply() -> None:
        deps.runner.run("fnm", "install", version)
        deps.runner.run("fnm", "default", version)

    return Step(
        name="Install Node.js",
        description=f"Install Node.js {version} via fnm",
        explain=(
            "Node.js is the JavaScript runtime used for frontend tooling and many internal "
            "services."
        ),
        check=check,
        apply=apply,
        dry_run=lambda: f"Would install Node.js {version} via fnm and set as default",
    )


def configure_node_certs_step(deps: SetupDependencies) -> Step:
    ca_path = str(deps.ca_bundle_path)

    def check() -> bool:
        if user_value(deps, "NODE_EXTRA_CA_CERTS") != ca_path:
            return False
        if os.environ.get("NODE_EXTRA_CA_CERTS") != ca_path:
            return False
        return output_is(try_run(deps, *_npm(deps, "config", "get", "cafile")), ca_path)

    def apply() -> None:
        export_env(deps, "NODE_EXTRA_CA_CERTS", ca_path)
        deps.runner.run(*_npm(deps, "config", "set", "cafile", ca_path))

    return Step(
        name="Configure Node.js CA certificates",
        description="Point Node.js and npm at the shhh CA bundle",
        explain=(
            "NODE_EXTRA_CA_CERTS tells Node to load additional certificates, and npm's cafile "
            "setting tells npm where to find trusted CAs. Without these, npm install and any "
            "Node.js HTTPS calls fail behind corporate proxies."
        ),
        check=check,
        apply=apply,
        dry_run=lambda: (
            f"Would set NODE_EXTRA_CA_CERTS={ca_path} and npm config set cafile {ca_path}"
        ),
    )


def configure_npm_registry_step(deps: SetupDependencies) -> Step:
    registry = deps.config.registries.npm_registry

    return Step(
        name="Configure npm registry",
        description=f"Set npm registry to {registry}",
        explain="Corporate environments often host an internal npm registry for approved packages.",
        check=lambda: output_is(try_run(deps, *_npm(deps, "config", "get", "registry")), registry),
        apply=lambda: deps.runner.run(*_npm(deps, "config", "set", "registry", registry)),
        dry_run=lambda: (
            f"Would run: fnm exec --using {deps.config.node.version} -- "
            f"npm config set registry {registry}"
        ),
    )
