"""Application configuration helpers."""

from __future__ import annotations

from .env import (
    CONFIG_ENV_VAR,
    OUTPUT_DIR_ENV_VAR,
    config_path_from_env,
    output_dir_from_env,
    require_env_var,
    require_env_vars,
)
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, level_for_verbosity
from .settings import (
    AccountMatchingSettings,
    ClassificationSettings,
    CounterpartSettings,
    EntitlementOwnershipSettings,
    HistorySourceSettings,
    IdentitySourceSettings,
    Settings,
    SyncSettings,
    TargetSystemSettings,
    load_settings,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "OUTPUT_DIR_ENV_VAR",
    "AccountMatchingSettings",
    "ClassificationSettings",
    "ConfigurationError",
    "CounterpartSettings",
    "EntitlementOwnershipSettings",
    "HistorySourceSettings",
    "IdentitySourceSettings",
    "MissingConfigurationError",
    "Settings",
    "SyncSettings",
    "TargetSystemSettings",
    "config_path_from_env",
    "configure_logging",
    "level_for_verbosity",
    "load_settings",
    "output_dir_from_env",
    "require_env_var",
    "require_env_vars",
]
