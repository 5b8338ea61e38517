"""Tools module: groups of developer tools installed through Scoop."""

from typing import List, Sequence

from shhh.modules.base import Category, Module, Step
from shhh.modules.setup._shared import SetupDependencies, try_run


def new_tools_module(deps: SetupDependencies) -> Module:
    tools = deps.config.tools
    groups = (
        (
            "Install core tools",
            "Install foundational developer tools via Scoop",
            "Foundational tools: git, jq, ripgrep, fd, fzf, delta, etc.",
            tools.core,
        ),
        (
            "Install data tools",
            "Install data engineering tools via Scoop",
            "Data engineering tools: sqlcmd, bcp, etc.",
            tools.data,
        ),
        (
            "Install optional tools",
            "Install quality-of-life tools via Scoop",
            "Quality-of-life: bat, eza, lazygit, starship, etc.",
            tools.optional,
        ),
    )

    steps: List[Step] = [
        scoop_install_step(deps, name, description, explain, packages)
        for name, description, explain, packages in groups
        if packages
    ]

    return Module(
        id="tools",
        name="Tools",
        description="Install developer tools via Scoop",
        category=Category.TOOL,
        dependencies=["base"],
        steps=steps,
    )


def scoop_install_step(
    deps: SetupDependencies,
    name: str,
    description: str,
    explain: str,
    packages: Sequence[str],
) -> Step:
    """Install whichever of ``packages`` Scoop does not list yet."""
    packages = list(packages)

    def check() -> bool:
        result = try_run(deps, "scoop", "list")
        if result is None:
            return False
        return all(package in result.stdout for package in packages)

    def apply() -> None:
        result = try_run(deps, "scoop", "list")
        installed = result.stdout if result is not None else ""
        for package in packages:
            if package in installed:
                continue
            deps.runner.run("scoop", "install", package)
            deps.state.add_scoop_package(package)

    return Step(
        name=name,
        description=description,
        explain=explain,
        check=check,
        apply=apply,
        dry_run=lambda: f"Would install: {', '.join(packages)}",
    )
