"""
Configuration module for dns-plugin.
"""

import os
import re
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel

DURATION_UNITS = {"s": 1, "m": 60, "h": 60 * 60, "d": 60 * 60 * 24}


def _section(config_data: dict, name: str) -> dict:
    """Return a nested section, treating missing or non-mapping values as empty."""
    section = config_data.get(name)
    return section if isinstance(section, dict) else {}


class Config(BaseModel):
    """Configuration for dns-plugin."""

    # Plugin configuration
    plugin_url: str = "http://localhost:8888"
    plugin_timeout: str = "30s"

    # Logging configuration
    log_level: str = "info"

    @classmethod
    def from_yaml(cls, config_path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Config: Config instance populated with values from the YAML file
        """
        # Default configuration paths to check
        default_paths = [
            Path("./dns-plugin.yaml"),
            Path("./dns-plugin.yml"),
            Path("/etc/dns-plugin/dns-plugin.yaml"),
            Path("/etc/dns-plugin/config.yaml"),
        ]

        if config_path:
            paths = [Path(config_path)]
        else:
            paths = default_paths

        # Try to load configuration from the first existing path
        config_data = {}
        for path in paths:
            if path.exists():
                with open(path, "r") as f:
                    yaml_content = cls._substitute_env_vars(f.read())
                    config_data = yaml.safe_load(yaml_content) or {}
                break

        if not isinstance(config_data, dict):
            config_data = {}

        return cls(**cls._flatten_config(config_data))

    @staticmethod
    def _substitute_env_vars(content: str) -> str:
        """
        Substitute environment variables in the configuration content.

        Args:
            content: Configuration content

        Returns:
            str: Configuration content with environment variables substituted
        """
        # Pattern for ${ENV_VAR} or ${ENV_VAR:-default}
        pattern = r"\${([^}]+)}"

        def replace_env_var(match):
            env_var = match.group(1)
            if ":-" in env_var:
                env_var, default = env_var.split(":-", 1)
                return os.environ.get(env_var, default)
            return os.environ.get(env_var, "")

        return re.sub(pattern, replace_env_var, content)

    @staticmethod
    def _flatten_config(config_data: dict) -> dict:
        """
        Flatten nested configuration.

        Args:
            config_data: Nested configuration data

        Returns:
            dict: Flattened configuration data
        """
        flat_config = {}

        plugin = _section(config_data, "plugin")
        flat_config["plugin_url"] = plugin.get("url", "http://localhost:8888")
        flat_config["plugin_timeout"] = str(plugin.get("timeout", "30s"))

        logging = _section(config_data, "logging")
        flat_config["log_level"] = logging.get("level", "info")

        return flat_config

    @property
    def plugin_timeout_seconds(self) -> int:
        return self.parse_duration(self.plugin_timeout)

    def parse_duration(self, duration_str: str) -> int:
        """
        Parse a duration string like '15m' into seconds.

        Empty or malformed values fall back to one minute.

        Args:
            duration_str: Duration string

        Returns:
            int: Duration in seconds
        """
        match = re.match(r"^(\d+)([smhd])$", duration_str or "")
        if not match:
            return 60

        value, unit = match.groups()
        return int(value) * DURATION_UNITS[unit]
