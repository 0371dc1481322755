"""
FlowKit Configuration Package.

This package contains the centralized configuration modules for FlowKit.
"""

from config.manager import EnvironmentManager, env_manager
from config.types import CREDENTIAL_ENV_VARS, FlowkitSettings

# Re-export the singleton instance for easy access
env = env_manager

__all__ = [
    "EnvironmentManager",
    "env_manager",
    "env",
    "CREDENTIAL_ENV_VARS",
    "FlowkitSettings",
]
