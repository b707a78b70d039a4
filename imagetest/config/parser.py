"""Configuration for imagetest runs.

Settings are resolved in layers: built-in defaults, an optional YAML file,
environment variables, then command-line overrides.
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from imagetest.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "imagetest.yaml"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class SuiteConfig:
    """Resolved settings of a suite run."""

    image_name: str = "ubi8/dotnet-80:latest"
    runtime_image_name: str = "ubi8/dotnet-80-runtime:latest"
    remote_only: bool = False
    verbose: bool = False
    test_dir: Path = field(default_factory=lambda: Path("test"))
    engine: str = "docker"
    build_tool: str = "s2i"
    run_id: Optional[str] = None
    poll_attempts: int = 10
    slow_poll_attempts: int = 60
    poll_delay: float = 1.0
    port: int = 8080
    target_framework: str = "net8.0"
    remote_repo: str = "https://github.com/redhat-developer/s2i-dotnetcore-ex.git"
    remote_ref: str = "dotnet-8.0"
    remote_context_dir: str = "app"
    remote_marker: str = "<title>"
    package_source: str = "https://api.nuget.org/v3/index.json"

    def fixture(self, app: str) -> Path:
        """Source directory of a fixture application."""
        return self.test_dir / app

    def image_tag(self, app: str) -> str:
        """Deterministic image tag for an application, suffixed with the run id."""
        tag = f"imagetest-{app}".lower()
        if self.run_id:
            tag += f"-{self.run_id}".lower()
        return tag

    def container_name(self, app: str) -> str:
        return f"{self.image_tag(app)}-container"


# Environment variable -> config field
ENV_VARS = {
    "IMAGE_NAME": "image_name",
    "RUNTIME_IMAGE_NAME": "runtime_image_name",
    "TEST_REMOTE_ONLY": "remote_only",
    "DEBUG": "verbose",
    "TEST_DIR": "test_dir",
    "CONTAINER_ENGINE": "engine",
    "S2I": "build_tool",
    "TEST_RUN_ID": "run_id",
    "POLL_ATTEMPTS": "poll_attempts",
    "POLL_DELAY": "poll_delay",
}

_FIELD_TYPES = {
    "remote_only": bool,
    "verbose": bool,
    "test_dir": Path,
    "poll_attempts": int,
    "slow_poll_attempts": int,
    "poll_delay": float,
    "port": int,
}

_OPTIONAL = {"run_id"}


def parse_bool(value: Any, name: str = "value") -> bool:
    """
    Parse a boolean setting.

    Raises:
        ConfigError: If the value is not a recognised boolean
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw setting to the type of its config field."""
    field_type = _FIELD_TYPES.get(name)
    if value is None:
        if name in _OPTIONAL:
            return None
        raise ConfigError(f"{name} must not be null")
    if field_type is bool:
        return parse_bool(value, name)
    if field_type is Path:
        return Path(value)
    if field_type in (int, float):
        try:
            return field_type(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid {field_type.__name__} for {name}: {value!r}")
    return str(value)


def _validate(config: SuiteConfig) -> SuiteConfig:
    if not config.image_name:
        raise ConfigError("image_name must not be empty")
    if config.poll_attempts < 1 or config.slow_poll_attempts < 1:
        raise ConfigError("poll attempts must be at least 1")
    if config.poll_delay < 0:
        raise ConfigError("poll_delay must not be negative")
    return config


def load_yaml_settings(config_file: Path) -> Dict[str, Any]:
    """
    Read settings from a YAML file.

    Raises:
        ConfigError: If the file is unreadable, not a mapping or has unknown keys
    """
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {config_file}: {e}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    known = {f.name for f in fields(SuiteConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {config_file}: {', '.join(unknown)}")

    return {name: _coerce(name, value) for name, value in data.items()}


def settings_from_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect settings from environment variables that are set."""
    settings = {}
    for var, name in ENV_VARS.items():
        if var in environ:
            settings[name] = _coerce(name, environ[var])
            logger.debug(f"{name} from ${var}")
    return settings


def load_config(
    config_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> SuiteConfig:
    """
    Resolve the suite configuration.

    Args:
        config_file: YAML file; defaults to ./imagetest.yaml when present
        environ: Environment mapping (defaults to os.environ)
        overrides: Settings from the command line; None values are ignored

    Returns:
        Validated SuiteConfig

    Raises:
        ConfigError: If any layer holds an invalid setting
    """
    environ = os.environ if environ is None else environ
    config = SuiteConfig()

    if config_file is None:
        default = Path(DEFAULT_CONFIG_FILE)
        config_file = default if default.exists() else None
    elif not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    if config_file is not None:
        logger.debug(f"Loading configuration from {config_file}")
        config = replace(config, **load_yaml_settings(config_file))

    config = replace(config, **settings_from_env(environ))

    cli_settings = {
        name: _coerce(name, value)
        for name, value in (overrides or {}).items()
        if value is not None
    }
    config = replace(config, **cli_settings)

    return _validate(config)
