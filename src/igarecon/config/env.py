"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

CONFIG_ENV_VAR: Final[str] = "IGARECON_CONFIG"
OUTPUT_DIR_ENV_VAR: Final[str] = "IGARECON_OUTPUT_DIR"


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Look up each name; every blank or unset one is listed in a single error."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def require_env_var(name: str) -> str:
    return require_env_vars((name,))[name]


def config_path_from_env() -> Path:
    return Path(require_env_var(CONFIG_ENV_VAR)).expanduser()


def output_dir_from_env() -> Path | None:
    value = os.getenv(OUTPUT_DIR_ENV_VAR)
    if value is None or not value.strip():
        return None
    return Path(value.strip()).expanduser()
