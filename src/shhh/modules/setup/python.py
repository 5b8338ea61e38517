"""Python module: uv, a managed Python and PyPI settings."""

from typing import List

from shhh.modules.base import Category, Module, Step
from shhh.modules.setup._shared import SetupDependencies, env_is_exported, export_env, try_run

UV_PYTHON_PREFERENCE = "only-managed"


def new_python_module(deps: SetupDependencies) -> Module:
    steps: List[Step] = [
        install_uv_step(deps),
        install_python_step(deps),
        configure_python_certs_step(deps),
        set_uv_python_preference_step(deps),
    ]
    if deps.config.registries.pypi_mirror:
        steps.append(configure_pypi_mirror_step(deps))

    return Module(
        id="python",
        name="Python",
        description="Install Python via uv and configure PyPI settings",
        category=Category.LANGUAGE,
        dependencies=["base"],
        steps=steps,
    )


def install_uv_step(deps: SetupDependencies) -> Step:
    def apply() -> None:
        deps.runner.run("scoop", "install", "uv")
        deps.state.add_scoop_package("uv")

    return Step(
        name="Install uv",
        description="Install uv Python package manager via Scoop",
        explain="uv is a fast Python package manager that also manages Python installations.",
        check=lambda: try_run(deps, "uv", "--version") is not None,
        apply=apply,
        dry_run=lambda: "Would install uv via scoop",
    )


def install_python_step(deps: SetupDependencies) -> Step:
    version = deps.config.python.version

    def check() -> bool:
        result = try_run(deps, "uv", "python", "list", "--only-installed")
        return result is not None and version in result.stdout

    return Step(
        name="Install Python",
        description=f"Install Python {version} via uv",
        explain="Python is used for scripting, data engineering, and many internal tools.",
        check=check,
        apply=lambda: deps.runner.run("uv", "python", "install", version),
        dry_run=lambda: f"Would install Python {version} via uv",
    )


def configure_python_certs_step(deps: SetupDependencies) -> Step:
    ca_path = str(deps.ca_bundle_path)
    keys = ("REQUESTS_CA_BUNDLE", "PIP_CERT")

    def apply() -> None:
        for key in keys:
            export_env(deps, key, ca_path)

    return Step(
        name="Configure Python CA certificates",
        description="Point pip and requests at the shhh CA bundle",
        explain=(
            "REQUESTS_CA_BUNDLE tells the requests library where to find trusted CAs, and "
            "PIP_CERT tells pip directly. Without these, pip install and API calls fail with "
            "SSL certificate verification errors behind corporate proxies."
        ),
        check=lambda: all(env_is_exported(deps, key, ca_path) for key in keys),
        apply=apply,
        dry_run=lambda: f"Would set REQUESTS_CA_BUNDLE={ca_path} and PIP_CERT={ca_path}",
    )


def set_uv_python_preference_step(deps: SetupDependencies) -> Step:
    return Step(
        name="Set UV_PYTHON_PREFERENCE",
        description=f"Set UV_PYTHON_PREFERENCE to {UV_PYTHON_PREFERENCE}",
        explain=(
            "This tells uv to only use Python versions it manages, avoiding conflicts with "
            "system Python."
        ),
        check=lambda: env_is_exported(deps, "UV_PYTHON_PREFERENCE", UV_PYTHON_PREFERENCE),
        apply=lambda: export_env(deps, "UV_PYTHON_PREFERENCE", UV_PYTHON_PREFERENCE),
        dry_run=lambda: (
            f"Would set UV_PYTHON_PREFERENCE={UV_PYTHON_PREFERENCE} "
            "in user environment and current process"
        ),
    )


def configure_pypi_mirror_step(deps: SetupDependencies) -> Step:
    mirror = deps.config.registries.pypi_mirror
    keys = ("UV_INDEX_URL", "PIP_INDEX_URL")

    def apply() -> None:
        for key in keys:
            export_env(deps, key, mirror)

    return Step(
        name="Configure PyPI mirror",
        description=f"Set UV_INDEX_URL and PIP_INDEX_URL to {mirror}",
        explain="Corporate environments often host an internal PyPI mirror for approved packages.",
        check=lambda: all(env_is_exported(deps, key, mirror) for key in keys),
        apply=apply,
        dry_run=lambda: f"Would set UV_INDEX_URL={mirror} and PIP_INDEX_URL={mirror}",
    )
