"""
Configuration loading for imagetest.
"""

from .parser import (
    DEFAULT_CONFIG_FILE,
    ENV_VARS,
    SuiteConfig,
    load_config,
    load_yaml_settings,
    parse_bool,
    settings_from_env,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_VARS",
    "SuiteConfig",
    "load_config",
    "load_yaml_settings",
    "parse_bool",
    "settings_from_env",
]
