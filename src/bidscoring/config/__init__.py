"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..schemas.config import AppConfig, load_config


def read_yaml(path: str | Path) -> Any:
    with Path(path).open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def load_app_config(path: str | Path | None) -> AppConfig:
    """Read and validate an application config file; defaults when ``path`` is None."""
    if path is None:
        return AppConfig()
    return load_config(read_yaml(path))


class ConfigManager:
    """YAML-backed loader for named configuration profiles."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def path_for(self, name: str) -> Path:
        return self._base_path / f"{name}.yaml"

    def load(self, name: str) -> AppConfig:
        """Load and validate a profile by name without file extension."""
        return load_app_config(self.path_for(name))

    def profiles(self) -> list[str]:
        return sorted(path.stem for path in self._base_path.glob("*.yaml"))


__all__ = ["AppConfig", "ConfigManager", "load_app_config", "read_yaml"]
