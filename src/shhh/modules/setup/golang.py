"""Go module: toolchain, GOPATH, GOBIN on PATH and GOPROXY."""

import os
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


def new_golang_module(deps: SetupDependencies) -> Module:
    steps: List[Step] = [
        install_go_step(deps),
        set_gopath_step(deps),
        add_gobin_step(deps),
    ]
    if deps.config.registries.go_proxy:
        steps.append(configure_goproxy_step(deps))

    return Module(
        id="golang",
        name="Go",
        description="Install Go and configure GOPATH, GOBIN, and GOPROXY",
        category=Category.LANGUAGE,
        dependencies=["base"],
        steps=steps,
    )


def install_go_step(deps: SetupDependencies) -> Step:
    version = deps.config.golang.version

    def check() -> bool:
        result = try_run(deps, "go", "version")
        return result is not None and version in result.stdout

    def apply() -> None:
        deps.runner.run("scoop", "install", "go")
        deps.state.add_scoop_package("go")

    return Step(
        name="Install Go",
        description=f"Install Go {version} via Scoop",
        explain="Go is the programming language used for many internal tools and services.",
        check=check,
        apply=apply,
        dry_run=lambda: f"Would install Go {version} via scoop",
    )


def set_gopath_step(deps: SetupDependencies) -> Step:
    gopath = str(Path.home() / "go")

    return Step(
        name="Set GOPATH",
        description="Set GOPATH to ~/go",
        explain="GOPATH tells Go where to store downloaded modules and build artifacts.",
        check=lambda: env_is_exported(deps, "GOPATH", gopath),
        apply=lambda: export_env(deps, "GOPATH", gopath),
        dry_run=lambda: f"Would set GOPATH={gopath} in user environment and current process",
    )


def add_gobin_step(deps: SetupDependencies) -> Step:
    gobin = str(Path.home() / "go" / "bin")

    def check() -> bool:
        try:
            entries = deps.env.list_path()
        except (OSError, ShhhError):
            return False
        return any(entry.dir == gobin for entry in entries)

    def apply() -> None:
        deps.env.append_path(gobin)
        process_dirs = os.environ.get("PATH", "").split(os.pathsep)
        if gobin not in process_dirs:
            os.environ["PATH"] = os.pathsep.join([d for d in process_dirs if d] + [gobin])
        deps.state.add_path_entry(gobin)

    return Step(
        name="Add GOBIN to PATH",
        description="Add ~/go/bin to PATH",
        explain=(
            "Adding GOBIN to your PATH lets you run Go-installed tools directly from the "
            "command line."
        ),
        check=check,
        apply=apply,
        dry_run=lambda: f"Would add {gobin} to PATH",
    )


def configure_goproxy_step(deps: SetupDependencies) -> Step:
    go_proxy = deps.config.registries.go_proxy

    def apply() -> None:
        deps.runner.run("go", "env", "-w", f"GOPROXY={go_proxy}")
        os.environ["GOPROXY"] = go_proxy
        deps.state.add_env_var("GOPROXY")

    return Step(
        name="Configure GOPROXY",
        description=f"Set GOPROXY to {go_proxy}",
        explain=(
            "GOPROXY tells Go where to download modules from. Corporate environments often "
            "use an internal proxy."
        ),
        check=lambda: output_is(try_run(deps, "go", "env", "GOPROXY"), go_proxy),
        apply=apply,
        dry_run=lambda: f"Would run: go env -w GOPROXY={go_proxy}",
    )
