"""Configuration loading for worklog.

Settings live in a single file in the user's home directory. The format
is chosen by suffix:

1. ``.worklog.yaml`` / ``.worklog.yml`` - the usual case
2. ``.worklog.toml``
3. ``.worklog.json``

Missing files mean defaults. Unknown keys are ignored.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

import yaml

DEFAULT_STORAGE_DIR = ".worklog"

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class ProjectSettings:
    """Project listing settings."""
    show_last: int = 3


@dataclass
class GithubSettings:
    """GitHub API access, consumed by the ingestion client."""
    api_key: Optional[str] = None
    username: Optional[str] = None


@dataclass
class WorklogConfig:
    """Configuration for a worklog installation."""

    # Directory holding day files, people.yaml and projects.yaml
    storage_path: Path = field(default_factory=lambda: Path.home() / DEFAULT_STORAGE_DIR)

    log_level: str = "info"
    timezone: str = "UTC"

    # Seconds to wait for a day file lock before giving up
    lock_timeout: float = 10.0

    # Read by the command line, web and GitHub ingestion layers, not by the stores
    webserver_port: int = 3000
    project: ProjectSettings = field(default_factory=ProjectSettings)
    github: GithubSettings = field(default_factory=GithubSettings)

    def __post_init__(self):
        self.storage_path = Path(self.storage_path).expanduser()
        self.log_level = str(self.log_level).lower()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {self.log_level}")

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def storage_path_exists(self) -> bool:
        return self.storage_path.exists()

    def is_default_storage_path(self) -> bool:
        return self.storage_path == Path.home() / DEFAULT_STORAGE_DIR


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dict_to_config(data: dict[str, Any]) -> WorklogConfig:
    """Convert dictionary to WorklogConfig."""
    config = WorklogConfig()

    if data.get("storage_path"):
        config.storage_path = Path(data["storage_path"]).expanduser()
    if data.get("log_level"):
        level = str(data["log_level"]).lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {level}")
        config.log_level = level
    if data.get("timezone"):
        config.timezone = data["timezone"]
    if data.get("webserver_port"):
        config.webserver_port = int(data["webserver_port"])
    if data.get("lock_timeout"):
        config.lock_timeout = float(data["lock_timeout"])

    project = data.get("project")
    if isinstance(project, dict) and "show_last" in project:
        config.project.show_last = int(project["show_last"])

    github = data.get("github")
    if isinstance(github, dict):
        config.github.api_key = github.get("api_key")
        config.github.username = github.get("username")

    return config


def find_config_file(home: Path) -> Optional[Path]:
    """Find the configuration file in ``home``.

    Search order:
    1. .worklog.yaml
    2. .worklog.yml
    3. .worklog.toml
    4. .worklog.json
    """
    candidates = [
        ".worklog.yaml",
        ".worklog.yml",
        ".worklog.toml",
        ".worklog.json",
    ]

    for name in candidates:
        path = home / name
        if path.exists():
            return path

    return None


def load_config(home: Optional[Path] = None, config_path: Optional[Path] = None) -> WorklogConfig:
    """Load worklog configuration.

    Args:
        home: Directory searched for the config file, defaults to ``~``
        config_path: Optional explicit path to config file

    Returns:
        WorklogConfig instance
    """
    if config_path is None:
        config_path = find_config_file(home or Path.home())

    if config_path is None:
        # No config file - use defaults
        return WorklogConfig()

    suffix = config_path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        return dict_to_config(load_yaml_config(config_path))

    elif suffix == ".toml":
        return dict_to_config(load_toml_config(config_path))

    elif suffix == ".json":
        return dict_to_config(load_json_config(config_path))

    else:
        raise ValueError(f"Unsupported config file type: {suffix}")
