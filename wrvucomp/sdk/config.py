"""Configuration management for wRVU Comp.

Configuration is split into two files:

1. settings.json - Machine-specific settings
   - organization: path to organization.yaml (optional, if not colocated)
   - data_dir: where computed metrics are written

2. organization.yaml - Organization-wide compensation settings
   - default_holdback_percent: holdback applied when a provider has no override
   - fallback_conversion_factor: $/wRVU used when a specialty has no market row

Config directory resolution:
1. WRVU_COMP_CONFIG_PATH environment variable (if set)
2. ~/.config/wrvu-comp/ (XDG_CONFIG_HOME fallback)

Data path resolution:
1. settings.json "data_dir" key
2. XDG_DATA_HOME/wrvu-comp/ or ~/.local/share/wrvu-comp/
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "wrvu-comp"
SETTINGS_FILENAME = "settings.json"
ORGANIZATION_FILENAME = "organization.yaml"

DEFAULT_HOLDBACK_PERCENT = 20.0
# Organization base wRVU rate, used when a specialty has no market CF
DEFAULT_FALLBACK_CONVERSION_FACTOR = 45.00


class EngineSettings(BaseModel):
    """Organization-wide settings consumed by the engine."""

    model_config = ConfigDict(extra="forbid")

    default_holdback_percent: float = Field(
        default=DEFAULT_HOLDBACK_PERCENT, ge=0, le=100,
        description="Holdback percent when the provider has no override",
    )
    fallback_conversion_factor: float = Field(
        default=DEFAULT_FALLBACK_CONVERSION_FACTOR, gt=0,
        description="Conversion factor when the specialty has no market data",
    )


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. WRVU_COMP_CONFIG_PATH environment variable
    2. ~/.config/wrvu-comp/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("WRVU_COMP_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {settings_file}: {e}")


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json."""
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_organization_path() -> Path:
    """Get the path to organization.yaml.

    Resolution order:
    1. settings.json "organization" key (if set)
    2. organization.yaml in config directory
    """
    custom = get_setting("organization")
    if custom:
        return Path(custom)
    return get_config_dir() / ORGANIZATION_FILENAME


def load_organization() -> dict:
    """Load organization settings from organization.yaml.

    Returns:
        Organization dictionary (empty dict if the file doesn't exist)
    """
    path = get_organization_path()

    if not path.exists():
        return {}

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def save_organization(organization: dict, path: Optional[Path] = None) -> Path:
    """Save organization settings to organization.yaml."""
    if path is None:
        path = get_organization_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(organization, f, default_flow_style=False, sort_keys=False)

    return path


def set_organization_value(key: str, value: Any) -> Path:
    """Set one organization value, validating the result before saving.

    Raises:
        ConfigError: If the new value fails EngineSettings validation
    """
    organization = load_organization()
    organization[key] = value
    validate_engine_settings(organization)
    return save_organization(organization)


def validate_engine_settings(data: dict) -> EngineSettings:
    """Validate an organization dict into EngineSettings.

    Raises:
        ConfigError: With a readable message when validation fails
    """
    try:
        return EngineSettings.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid organization settings: {problems}")


def load_engine_settings() -> EngineSettings:
    """Load EngineSettings from organization.yaml (defaults if absent)."""
    settings = validate_engine_settings(load_organization())
    logger.debug(
        f"Engine settings: holdback={settings.default_holdback_percent}%, "
        f"fallback_cf={settings.fallback_conversion_factor}"
    )
    return settings


def get_data_path() -> Path:
    """Get the data directory path (created if it doesn't exist).

    Resolution order:
    1. settings.json "data_dir" key
    2. XDG_DATA_HOME/wrvu-comp/
    """
    custom = get_setting("data_dir")
    if custom:
        data_path = Path(custom).expanduser()
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
        data_path = Path(xdg_data_home) / APP_NAME
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


def get_year_data_path(year: int) -> Path:
    """Get data path for a specific year (created if it doesn't exist)."""
    path = get_data_path() / str(year)
    path.mkdir(parents=True, exist_ok=True)
    return path
