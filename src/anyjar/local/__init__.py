"""
Local package for the AnyJar launcher.

This package provides the configuration file collaborator, the console
sink and the process supervisor.
"""

from .config import ConfigError, ServerConfig, create_default_config, load_config

__all__ = ["ConfigError", "ServerConfig", "create_default_config", "load_config"]
