"""
Server configuration for gantt-mcp.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (gantt-mcp.toml)
3. Default values (lowest priority)

Environment variables:
- GANTT_MCP_CONFIG_FILE: Path to TOML config file
- GANTT_MCP_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- GANTT_MCP_STRUCTURED_LOGGING: Emit JSON log lines (true/false)
- GANTT_MCP_MAX_DEPTH: Maximum number of hierarchy levels
- GANTT_MCP_DEFAULT_TASK_DURATION: Duration in days of newly inserted tasks
"""

import os
import logging
from dataclasses import dataclass, field
from importlib.metadata import version as get_package_version, PackageNotFoundError
from pathlib import Path
from typing import Optional, Dict, Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from gantt_mcp.core.hierarchy import (
    DEFAULT_GROUP_NAME,
    DEFAULT_TASK_COLOR,
    DEFAULT_TASK_DURATION,
    DEFAULT_TASK_NAME,
    MAX_HIERARCHY_DEPTH,
)
from gantt_mcp.core.logging_config import configure_logging


logger = logging.getLogger(__name__)


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("gantt-mcp")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _positive_int(value: Any, name: str, fallback: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s '%s'. Falling back to %d", name, value, fallback)
        return fallback
    if parsed < 1:
        logger.warning("%s must be at least 1, got %d. Falling back to %d", name, parsed, fallback)
        return fallback
    return parsed


@dataclass
class HierarchyConfig:
    """Schedule-editing defaults passed into the core by the surfaces.

    Attributes:
        max_depth: Maximum number of hierarchy levels (root level included)
        default_task_duration: Duration in days of newly inserted tasks
        default_task_name: Name given to newly inserted tasks
        default_group_name: Name given to summaries created by grouping
        default_task_color: Color given to new tasks and summaries
    """

    max_depth: int = MAX_HIERARCHY_DEPTH
    default_task_duration: int = DEFAULT_TASK_DURATION
    default_task_name: str = DEFAULT_TASK_NAME
    default_group_name: str = DEFAULT_GROUP_NAME
    default_task_color: str = DEFAULT_TASK_COLOR

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "HierarchyConfig":
        """Create config from TOML dict (typically [hierarchy] section).

        Args:
            data: Dict from TOML parsing

        Returns:
            HierarchyConfig instance
        """
        return cls(
            max_depth=_positive_int(
                data.get("max_depth", MAX_HIERARCHY_DEPTH), "max_depth", MAX_HIERARCHY_DEPTH
            ),
            default_task_duration=_positive_int(
                data.get("default_task_duration", DEFAULT_TASK_DURATION),
                "default_task_duration",
                DEFAULT_TASK_DURATION,
            ),
            default_task_name=str(data.get("default_task_name", DEFAULT_TASK_NAME)),
            default_group_name=str(data.get("default_group_name", DEFAULT_GROUP_NAME)),
            default_task_color=str(data.get("default_task_color", DEFAULT_TASK_COLOR)),
        )


@dataclass
class ServerConfig:
    """Server configuration with support for env vars and TOML overrides."""

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = True

    # Server configuration
    server_name: str = "gantt-mcp"
    server_version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    # Schedule editing configuration
    hierarchy: HierarchyConfig = field(default_factory=HierarchyConfig)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        # Load TOML config if available
        toml_path = config_file or os.environ.get("GANTT_MCP_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            # Try default locations
            for default_path in ["gantt-mcp.toml", ".gantt-mcp.toml"]:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        # Override with environment variables
        config._load_env()

        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        # Logging settings
        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

        # Server settings
        if "server" in data:
            srv = data["server"]
            if "name" in srv:
                self.server_name = srv["name"]
            if "version" in srv:
                self.server_version = srv["version"]

        # Schedule editing settings
        if "hierarchy" in data:
            self.hierarchy = HierarchyConfig.from_toml_dict(data["hierarchy"])

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if level := os.environ.get("GANTT_MCP_LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get("GANTT_MCP_STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

        if max_depth := os.environ.get("GANTT_MCP_MAX_DEPTH"):
            self.hierarchy.max_depth = _positive_int(
                max_depth, "GANTT_MCP_MAX_DEPTH", self.hierarchy.max_depth
            )

        if duration := os.environ.get("GANTT_MCP_DEFAULT_TASK_DURATION"):
            self.hierarchy.default_task_duration = _positive_int(
                duration, "GANTT_MCP_DEFAULT_TASK_DURATION", self.hierarchy.default_task_duration
            )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(
            level=self.log_level,
            format="structured" if self.structured_logging else "human",
        )


# Global configuration instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
