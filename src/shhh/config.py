"""Configuration management with file and environment variable support."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from shhh.modules.errors import ShhhError
from shhh.paths import config_dir, config_file_path


class ConfigError(ShhhError):
    """The configuration file could not be read or is invalid."""


class OrgConfig(BaseModel):
    """Organization the workstation belongs to."""

    name: str = ""


class ProxyConfig(BaseModel):
    """Corporate proxy settings exported to every tool."""

    http: str = ""
    https: str = ""
    no_proxy: str = ""


class CertsConfig(BaseModel):
    """Where root certificates come from."""

    source: str = "system"
    extra: List[str] = Field(default_factory=list)


class GitConfig(BaseModel):
    default_branch: str = "main"
    ssh_hosts: List[str] = Field(default_factory=list)


class GitLabConfig(BaseModel):
    host: str = ""
    ssh_port: int = 22


class RegistriesConfig(BaseModel):
    """Internal package mirrors."""

    pypi_mirror: str = ""
    npm_registry: str = ""
    go_proxy: str = ""


class ScoopConfig(BaseModel):
    buckets: List[str] = Field(default_factory=list)


class ToolsConfig(BaseModel):
    """Tool groups installed by the tools module."""

    core: List[str] = Field(default_factory=list)
    data: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)


class PythonConfig(BaseModel):
    version: str = "3.12"


class GolangConfig(BaseModel):
    version: str = "1.23"


class NodeConfig(BaseModel):
    version: str = "22"


class Config(BaseModel):
    """Main configuration model."""

    org: OrgConfig = Field(default_factory=OrgConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    certs: CertsConfig = Field(default_factory=CertsConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    registries: RegistriesConfig = Field(default_factory=RegistriesConfig)
    scoop: ScoopConfig = Field(default_factory=ScoopConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    python: PythonConfig = Field(default_factory=PythonConfig)
    golang: GolangConfig = Field(default_factory=GolangConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)


# environment variable -> (section, key)
ENV_OVERRIDES = {
    "SHHH_ORG": ("org", "name"),
    "SHHH_HTTP_PROXY": ("proxy", "http"),
    "SHHH_HTTPS_PROXY": ("proxy", "https"),
    "SHHH_NO_PROXY": ("proxy", "no_proxy"),
    "SHHH_PYPI_MIRROR": ("registries", "pypi_mirror"),
    "SHHH_NPM_REGISTRY": ("registries", "npm_registry"),
    "SHHH_GO_PROXY": ("registries", "go_proxy"),
}


class ConfigManager:
    """Manages configuration loading with precedence: env vars > config file > defaults."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Automatically loads a .env file if present in:
        1. Current directory (.env)
        2. The shhh config directory

        Note: .env loading is skipped during testing to prevent interference.
        """
        is_testing = os.getenv("PYTEST_CURRENT_TEST") is not None

        if not is_testing:
            # Existing environment variables win over .env values
            if Path(".env").exists():
                load_dotenv(".env", override=False)
            home_env = config_dir() / ".env"
            if home_env.exists():
                load_dotenv(home_env, override=False)

        if config_path:
            self.config_path = Path(config_path)
        else:
            self.config_path = config_file_path()

    def exists(self) -> bool:
        """Check whether the configuration file exists."""
        return self.config_path.is_file()

    def load(self) -> Config:
        """
        Load configuration with precedence rules.

        Order of precedence (highest to lowest):
        1. SHHH_* environment variables (including .env files)
        2. Configuration file
        3. Default values

        Raises:
            ConfigError: If the file cannot be parsed or fails validation
        """
        config_dict: Dict[str, Any] = {}

        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"parsing config {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigError(f"parsing config {self.config_path}: expected a mapping")
            config_dict.update(file_config)

        self._load_from_env(config_dict)

        try:
            return Config(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"invalid config {self.config_path}: {e}") from e

    def _load_from_env(self, config_dict: Dict[str, Any]) -> None:
        """Load configuration overrides from environment variables."""
        for var, (section, key) in ENV_OVERRIDES.items():
            if value := os.getenv(var):
                section_dict = config_dict.get(section) or {}
                section_dict[key] = value
                config_dict[section] = section_dict

    def create_default_config(self) -> None:
        """Create a default configuration file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        default_config = {
            "org": {"name": "My Org"},
            "proxy": {
                "http": "http://proxy.example.com:8080",
                "https": "http://proxy.example.com:8080",
                "no_proxy": "localhost,127.0.0.1",
            },
            "certs": {"source": "system", "extra": []},
            "git": {"default_branch": "main"},
            "registries": {
                "pypi_mirror": "",
                "npm_registry": "",
                "go_proxy": "",
            },
            "scoop": {"buckets": ["extras"]},
            "tools": {
                "core": ["jq", "ripgrep", "fd", "fzf"],
                "data": [],
                "optional": [],
            },
            "python": {"version": "3.12"},
            "golang": {"version": "1.23"},
            "node": {"version": "22"},
        }

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
