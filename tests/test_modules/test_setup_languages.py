"""Tests for the python, golang and node setup modules."""

import os
from pathlib import Path

import pytest
from conftest import FakeCommandRunner, InMemoryProfileManager, InMemoryUserEnv

from shhh.modules.runner import Runner
from shhh.modules.setup import SetupDependencies, build_registry
from shhh.modules.setup.golang import (
    add_gobin_step,
    configure_goproxy_step,
    install_go_step,
    new_golang_module,
)
from shhh.modules.setup.node import (
    FNM_INIT_LINE,
    configure_fnm_shell_step,
    configure_node_certs_step,
    install_node_step,
    new_node_module,
)
from shhh.modules.setup.python import (
    UV_PYTHON_PREFERENCE,
    configure_python_certs_step,
    install_python_step,
    new_python_module,
)


@pytest.mark.unit
class TestRegistry:
    def test_registration_order(self, deps: SetupDependencies):
        registry = build_registry(deps)
        assert registry.list_modules() == ["base", "python", "golang", "node", "tools"]

    def test_every_module_depends_on_base(self, deps: SetupDependencies):
        registry = build_registry(deps)
        for module_id in ["python", "golang", "node", "tools"]:
            assert registry.get(module_id).dependencies == ["base"]

    def test_resolve_languages(self, deps: SetupDependencies):
        registry = build_registry(deps)
        assert registry.resolve_deps(["node", "python"]) == ["base", "python", "node"]


@pytest.mark.unit
class TestPythonModule:
    """Test the python module."""

    def test_steps(self, deps: SetupDependencies):
        names = [s.name for s in new_python_module(deps).steps]
        assert names == [
            "Install uv",
            "Install Python",
            "Configure Python CA certificates",
            "Set UV_PYTHON_PREFERENCE",
        ]

    def test_pypi_mirror_step_when_configured(self, deps: SetupDependencies):
        deps.config.registries.pypi_mirror = "https://pypi.acme.internal/simple"
        assert new_python_module(deps).steps[-1].name == "Configure PyPI mirror"

    def test_install_python_checks_installed_versions(
        self, deps: SetupDependencies, command_runner: FakeCommandRunner
    ):
        command_runner.set("uv python list --only-installed", stdout="cpython-3.11.9-windows\n")
        step = install_python_step(deps)
        assert not step.is_satisfied()

        command_runner.set("uv python list --only-installed", stdout="cpython-3.12.4-windows\n")
        assert step.is_satisfied()

    def test_certs_point_at_bundle(self, deps: SetupDependencies, user_env: InMemoryUserEnv):
        step = configure_python_certs_step(deps)
        step.apply()

        ca_path = str(deps.ca_bundle_path)
        assert user_env.values["REQUESTS_CA_BUNDLE"] == ca_path
        assert os.environ["PIP_CERT"] == ca_path
        assert step.is_satisfied()

    def test_full_run(self, deps: SetupDependencies, command_runner: FakeCommandRunner):
        command_runner.set("scoop install uv")
        command_runner.set("uv python install 3.12")
        deps.config.registries.pypi_mirror = "https://pypi.acme.internal/simple"

        result = Runner().run_module(new_python_module(deps))

        assert result.success
        assert result.completed == 5
        assert os.environ["UV_PYTHON_PREFERENCE"] == UV_PYTHON_PREFERENCE
        assert os.environ["UV_INDEX_URL"] == "https://pypi.acme.internal/simple"
        assert "uv" in deps.state.scoop_packages


@pytest.mark.unit
class TestGolangModule:
    """Test the golang module."""

    def test_steps(self, deps: SetupDependencies):
        deps.config.registries.go_proxy = "https://goproxy.acme.internal"
        names = [s.name for s in new_golang_module(deps).steps]
        assert names == ["Install Go", "Set GOPATH", "Add GOBIN to PATH", "Configure GOPROXY"]

    def test_install_go_checks_version(self, deps: SetupDependencies, command_runner):
        command_runner.set("go version", stdout="go version go1.22.5 windows/amd64")
        assert not install_go_step(deps).is_satisfied()
        command_runner.set("go version", stdout="go version go1.23.1 windows/amd64")
        assert install_go_step(deps).is_satisfied()

    def test_add_gobin(self, deps: SetupDependencies, user_env: InMemoryUserEnv):
        gobin = str(Path.home() / "go" / "bin")
        step = add_gobin_step(deps)
        assert not step.is_satisfied()

        step.apply()

        assert user_env.path == [gobin]
        assert gobin in os.environ["PATH"].split(os.pathsep)
        assert deps.state.managed_path_entries == [gobin]
        assert step.is_satisfied()

    def test_goproxy(self, deps: SetupDependencies, command_runner: FakeCommandRunner):
        deps.config.registries.go_proxy = "https://goproxy.acme.internal"
        command_runner.set("go env -w GOPROXY=https://goproxy.acme.internal")
        step = configure_goproxy_step(deps)

        step.apply()

        assert os.environ["GOPROXY"] == "https://goproxy.acme.internal"
        command_runner.set("go env GOPROXY", stdout="https://goproxy.acme.internal\n")
        assert step.is_satisfied()


@pytest.mark.unit
class TestNodeModule:
    """Test the node module."""

    def test_steps(self, deps: SetupDependencies):
        deps.config.registries.npm_registry = "https://npm.acme.internal"
        names = [s.name for s in new_node_module(deps).steps]
        assert names == [
            "Install fnm",
            "Configure fnm shell",
            "Install Node.js",
            "Configure Node.js CA certificates",
            "Configure npm registry",
        ]

    def test_fnm_shell_uses_managed_block(
        self, deps: SetupDependencies, profile: InMemoryProfileManager
    ):
        profile.content = "Set-Alias ll ls\n"
        step = configure_fnm_shell_step(deps)
        assert not step.is_satisfied()

        step.apply()

        assert profile.managed_block() == FNM_INIT_LINE
        assert profile.content.startswith("Set-Alias ll ls\n")
        assert step.is_satisfied()

    def test_install_node(self, deps: SetupDependencies, command_runner: FakeCommandRunner):
        command_runner.set("fnm install 22")
        command_runner.set("fnm default 22")
        step = install_node_step(deps)

        step.apply()

        assert command_runner.calls[-2:] == ["fnm install 22", "fnm default 22"]

    def test_node_certs(self, deps: SetupDependencies, command_runner: FakeCommandRunner):
        ca_path = str(deps.ca_bundle_path)
        command_runner.set(f"fnm exec --using 22 -- npm config set cafile {ca_path}")
        step = configure_node_certs_step(deps)

        step.apply()

        assert os.environ["NODE_EXTRA_CA_CERTS"] == ca_path
        command_runner.set("fnm exec --using 22 -- npm config get cafile", stdout=ca_path)
        assert step.is_satisfied()
