"""CLI configuration.

Provides configuration handling for the gantt CLI, leveraging the shared
gantt_mcp.config module.
"""

from typing import Optional

from gantt_mcp.config import HierarchyConfig, ServerConfig, get_config as get_server_config


class CLIContext:
    """CLI execution context with resolved configuration.

    Holds the effective configuration for a CLI command, including
    any overrides from command-line options.
    """

    def __init__(
        self,
        max_depth: Optional[int] = None,
        server_config: Optional[ServerConfig] = None,
    ):
        """Initialize CLI context.

        Args:
            max_depth: Explicit hierarchy depth override from --max-depth.
            server_config: Optional server config (uses global if not provided).
        """
        self._max_depth_override = max_depth
        self._config = server_config or get_server_config()

    @property
    def config(self) -> ServerConfig:
        """Get the underlying server configuration."""
        return self._config

    @property
    def hierarchy(self) -> HierarchyConfig:
        return self._config.hierarchy

    @property
    def max_depth(self) -> int:
        """Effective maximum hierarchy depth.

        Resolution order:
        1. CLI --max-depth option (highest priority)
        2. ServerConfig.hierarchy.max_depth (from env/TOML)
        """
        if self._max_depth_override is not None:
            return self._max_depth_override
        return self._config.hierarchy.max_depth


def create_context(
    config_file: Optional[str] = None,
    max_depth: Optional[int] = None,
) -> CLIContext:
    """Create a CLI context with optional overrides.

    Args:
        config_file: Optional TOML config path (env and defaults otherwise).
        max_depth: Optional hierarchy depth override.

    Returns:
        Configured CLIContext instance.
    """
    server_config = ServerConfig.from_env(config_file) if config_file else None
    return CLIContext(max_depth=max_depth, server_config=server_config)
