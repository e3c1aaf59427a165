"""Configuration models and process-wide defaults for rule ordering.

Preferred Import Patterns
-------------------------
    from ruleorder.config import SchedulerConfig, default_catalog

    catalog = SchedulerConfig.from_env().build_catalog()
"""

from ruleorder.config.models import (
    ENV_DEFAULT_PHASE,
    ENV_LOG_WARNINGS,
    ENV_PHASES,
    ENV_STRICT_REFERENCES,
    PhaseCatalogConfig,
    SchedulerConfig,
    default_catalog,
    default_config,
    reset_defaults,
)

__all__ = [
    "ENV_DEFAULT_PHASE",
    "ENV_LOG_WARNINGS",
    "ENV_PHASES",
    "ENV_STRICT_REFERENCES",
    "PhaseCatalogConfig",
    "SchedulerConfig",
    "default_catalog",
    "default_config",
    "reset_defaults",
]
