"""Environment and ``.env`` file configuration loading.

Precedence, highest first: explicit overrides, ``ENRICH_*`` environment
variables, values from the ``.env`` file, schema defaults.
"""

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import ValidationError

from enrich_batch.exceptions import ConfigurationError

from .schema import ENV_PREFIX, EnrichSettings


def read_env_file(env_file: str | Path) -> dict[str, str]:
    """Return ``ENRICH_*`` values from ``env_file`` keyed by field name.

    Keys that are also set in the process environment are left out so the
    environment keeps priority.

    Raises:
        ConfigurationError: If the file does not exist.
    """
    env_path = Path(env_file)
    if not env_path.is_file():
        raise ConfigurationError(f"Environment file not found: {env_path}")

    values: dict[str, str] = {}
    for key, value in dotenv_values(env_path).items():
        upper = key.upper()
        if not upper.startswith(ENV_PREFIX) or value is None:
            continue
        if upper in os.environ:
            continue
        values[upper[len(ENV_PREFIX) :].lower()] = value
    return values


def load_settings(
    env_file: str | Path | None = None, **overrides: Any
) -> EnrichSettings:
    """Resolve settings from overrides, environment and an optional ``.env`` file.

    Raises:
        ConfigurationError: If the file is missing or any value is invalid.
    """
    file_values = read_env_file(env_file) if env_file else {}
    try:
        return EnrichSettings(**{**file_values, **overrides})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid enrichment settings: {e}") from e
