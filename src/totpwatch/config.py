"""Configuration management for totpwatch."""

import os
import tomllib
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
from xdg_base_dirs import xdg_config_home, xdg_state_home

from .errors import ConfigurationError


@dataclass
class Config:
    """Application configuration."""

    manifest_path: Optional[Path] = None
    state_path: Optional[Path] = None
    rollover_bell: bool = True

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from file.

        Args:
            config_path: Path to config file, defaults to XDG_CONFIG_HOME/totpwatch/config.toml

        Returns:
            Config instance with loaded settings

        Raises:
            ConfigurationError: If the config file is not valid TOML
        """
        if config_path is None:
            config_path = xdg_config_home() / "totpwatch" / "config.toml"

        config = cls()

        if config_path.exists():
            try:
                with open(config_path, "rb") as f:
                    data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

            if "manifest_path" in data:
                config.manifest_path = Path(data["manifest_path"]).expanduser()
            if "state_path" in data:
                config.state_path = Path(data["state_path"]).expanduser()
            if "rollover_bell" in data:
                config.rollover_bell = bool(data["rollover_bell"])

        return config


def get_manifest_path(custom_path: Optional[Path] = None, config: Optional[Config] = None) -> Path:
    """Get the credential manifest path based on config and arguments.

    Lookup order:
    1. Custom path argument
    2. TOTPWATCH_MANIFEST environment variable
    3. Config file manifest_path
    4. Local directory totpwatch.toml
    5. XDG_CONFIG_HOME/totpwatch/manifest.toml

    Args:
        custom_path: Optional custom manifest path
        config: Loaded configuration, read from disk if not given

    Returns:
        Path to use for the manifest
    """
    if custom_path:
        return custom_path

    env_manifest = os.environ.get("TOTPWATCH_MANIFEST")
    if env_manifest:
        return Path(env_manifest)

    config = config or Config.load()
    if config.manifest_path:
        return config.manifest_path

    local_manifest = Path("totpwatch.toml")
    if local_manifest.exists():
        return local_manifest

    return xdg_config_home() / "totpwatch" / "manifest.toml"


def get_state_path(config: Optional[Config] = None) -> Path:
    """Path of the file holding the persisted selection.

    Defaults to XDG_STATE_HOME/totpwatch/state.json.
    """
    config = config or Config.load()
    if config.state_path:
        return config.state_path
    return xdg_state_home() / "totpwatch" / "state.json"
