"""Configuration for enrichment runs.

Settings are resolved once (overrides, ``ENRICH_*`` environment, optional
``.env`` file) and then passed explicitly to the workflows.
"""

from .env_loader import load_settings, read_env_file
from .schema import ENV_PREFIX, EnrichSettings

__all__ = ["ENV_PREFIX", "EnrichSettings", "load_settings", "read_env_file"]
