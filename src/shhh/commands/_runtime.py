"""Shared plumbing for commands that run modules."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import typer
from rich.console import Console

from shhh import __version__
from shhh.config import Config, ConfigError, ConfigManager
from shhh.log import disable_logging, setup_logging
from shhh.modules.base import ModuleResult
from shhh.modules.registry import ModuleRegistry
from shhh.modules.setup import SetupDependencies, build_registry
from shhh.paths import ca_bundle_path, log_file_path, state_file_path
from shhh.process import SubprocessRunner
from shhh.state import State, StateError, load_state, save_state
from shhh.system import new_cert_store, new_profile_manager, new_user_env


@dataclass
class Runtime:
    """Everything a run needs, assembled from CLI options."""

    config: Config
    state: State
    deps: SetupDependencies
    registry: ModuleRegistry
    logger: logging.Logger


def build_dependencies(config: Config, state: State) -> SetupDependencies:
    """Wire the real platform backends."""
    return SetupDependencies(
        config=config,
        env=new_user_env(),
        profile=new_profile_manager(),
        cert_store=new_cert_store(),
        runner=SubprocessRunner(),
        state=state,
        ca_bundle_path=ca_bundle_path(),
    )


def load_config(console: Console, config_file: Optional[str]) -> Config:
    config_manager = ConfigManager(config_file)
    if not config_manager.exists():
        console.print("[dim]No config file found, using defaults.[/dim]")
        console.print(f"[dim]Create {config_manager.config_path} to customize.[/dim]\n")
    else:
        console.print(f"Config: [cyan]{config_manager.config_path}[/cyan]")
    try:
        config = config_manager.load()
    except ConfigError as e:
        console.print(f"[red]✗[/red] Failed to load configuration: {e}")
        raise typer.Exit(code=1)
    if config.org.name:
        console.print(f"Org:    [cyan]{config.org.name}[/cyan]")
    return config


def prepare(ctx: typer.Context, console: Console) -> Runtime:
    """Load config, logging and state, then build the module registry."""
    options = ctx.obj or {}
    config = load_config(console, options.get("config_file"))

    try:
        # Dry-run forecasts are only reported through the log.
        verbose = options.get("verbose", False) or options.get("dry_run", False)
        logger = setup_logging(log_file_path(), verbose=verbose)
    except OSError:
        logger = disable_logging()

    try:
        state = load_state(state_file_path())
    except StateError as e:
        logger.warning("ignoring unreadable state: %s", e)
        state = State()

    deps = build_dependencies(config, state)
    return Runtime(
        config=config,
        state=state,
        deps=deps,
        registry=build_registry(deps),
        logger=logger,
    )


def requested_modules(registry: ModuleRegistry, modules: Optional[Sequence[str]]) -> List[str]:
    """Modules named on the command line, or every registered module."""
    if modules:
        return list(modules)
    return registry.list_modules()


def record_run(runtime: Runtime, results: Sequence[ModuleResult]) -> None:
    """Mark successful modules as installed and persist state."""
    state = runtime.state
    state.last_run = datetime.now(timezone.utc)
    state.shhh_version = __version__
    for result in results:
        if result.success:
            state.add_module(result.module_id)
    try:
        save_state(state_file_path(), state)
    except StateError as e:
        runtime.logger.error("failed to save state: %s", e)
