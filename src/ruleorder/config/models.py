"""
Configuration models for phase catalogs and scheduler behaviour.

These Pydantic models normalize the phase list supplied by the host engine so
the scheduler can rely on a validated, immutable ``PhaseCatalog``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ruleorder.phases import DEFAULT_PHASE, DEFAULT_PHASES, PhaseCatalog

ENV_PHASES = "RULEORDER_PHASES"
ENV_DEFAULT_PHASE = "RULEORDER_DEFAULT_PHASE"
ENV_STRICT_REFERENCES = "RULEORDER_STRICT_REFERENCES"
ENV_LOG_WARNINGS = "RULEORDER_LOG_WARNINGS"


def _parse_env_flag(value: str | None, *, default: bool) -> bool:
    """
    Interpret a string environment value as a boolean.

    Parameters
    ----------
    value:
        Raw environment variable value or None.
    default:
        Value to return when the environment variable is unset.

    Returns
    -------
    bool
        Parsed boolean flag.
    """
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _split_phases(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


class PhaseCatalogConfig(BaseModel):
    """
    Phase list and default phase for a scheduling run.

    When ``default_phase`` is omitted, ``migration_rules`` is used if it is part
    of the list, otherwise the first phase.
    """

    model_config = ConfigDict(frozen=True)

    phases: tuple[str, ...] = Field(
        default=DEFAULT_PHASES,
        description="Phase identifiers in execution order.",
    )
    default_phase: str | None = Field(
        default=None,
        description="Phase assigned to providers that declare none.",
    )

    @field_validator("phases", mode="before")
    @classmethod
    def _normalize_phases(cls, v: object) -> object:
        """
        Accept comma separated strings and trim every entry.

        Returns
        -------
        object
            Tuple of trimmed phase identifiers, or the raw value for pydantic to reject.
        """
        if isinstance(v, str):
            return _split_phases(v)
        if isinstance(v, (list, tuple)):
            return tuple(item.strip() if isinstance(item, str) else item for item in v)
        return v

    @field_validator("default_phase", mode="before")
    @classmethod
    def _normalize_default(cls, v: object) -> object:
        if isinstance(v, str):
            stripped = v.strip()
            return stripped or None
        return v

    @model_validator(mode="after")
    def _validate_phases(self) -> PhaseCatalogConfig:
        """
        Reject empty, blank or duplicate phases and an unknown default.

        Returns
        -------
        PhaseCatalogConfig
            Validated configuration.

        Raises
        ------
        ValueError
            When the phase list or default phase is inconsistent.
        """
        if not self.phases:
            message = "phases must contain at least one phase"
            raise ValueError(message)
        if any(not phase for phase in self.phases):
            message = "phases must not contain blank entries"
            raise ValueError(message)
        duplicates = sorted({phase for phase in self.phases if self.phases.count(phase) > 1})
        if duplicates:
            message = f"phases must be unique; duplicated: {', '.join(duplicates)}"
            raise ValueError(message)
        if self.default_phase is not None and self.default_phase not in self.phases:
            message = f"default_phase {self.default_phase!r} is not one of the configured phases"
            raise ValueError(message)
        return self

    @property
    def resolved_default(self) -> str:
        """Default phase after applying the fallback rules."""
        if self.default_phase is not None:
            return self.default_phase
        if DEFAULT_PHASE in self.phases:
            return DEFAULT_PHASE
        return self.phases[0]

    def build_catalog(self) -> PhaseCatalog:
        """
        Materialize the immutable catalog consumed by the scheduler.

        Returns
        -------
        PhaseCatalog
            Catalog preserving the configured order.
        """
        return PhaseCatalog.of(self.phases, default=self.resolved_default)


class SchedulerConfig(BaseModel):
    """Runtime settings for a scheduling run."""

    model_config = ConfigDict(frozen=True)

    catalog: PhaseCatalogConfig = Field(
        default_factory=PhaseCatalogConfig,
        description="Phase list and default phase.",
    )
    strict_references: bool = Field(
        default=False,
        description="Treat references to providers missing from the working set as fatal.",
    )
    log_warnings: bool = Field(
        default=True,
        description="Log each unresolved reference at WARNING level.",
    )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SchedulerConfig:
        """
        Construct a SchedulerConfig from environment variables.

        Parameters
        ----------
        environ
            Mapping to read instead of ``os.environ``.

        Returns
        -------
        SchedulerConfig
            Validated configuration populated from environment values.
        """
        env = os.environ if environ is None else environ
        catalog_values: dict[str, object] = {}
        raw_phases = env.get(ENV_PHASES)
        if raw_phases and raw_phases.strip():
            catalog_values["phases"] = raw_phases
        raw_default = env.get(ENV_DEFAULT_PHASE)
        if raw_default:
            catalog_values["default_phase"] = raw_default
        return cls(
            catalog=PhaseCatalogConfig.model_validate(catalog_values),
            strict_references=_parse_env_flag(env.get(ENV_STRICT_REFERENCES), default=False),
            log_warnings=_parse_env_flag(env.get(ENV_LOG_WARNINGS), default=True),
        )

    def build_catalog(self) -> PhaseCatalog:
        """Return the phase catalog described by this configuration."""
        return self.catalog.build_catalog()


@lru_cache(maxsize=1)
def default_config() -> SchedulerConfig:
    """
    Return the process-wide scheduler configuration, loaded once from the environment.

    Returns
    -------
    SchedulerConfig
        Cached configuration instance.
    """
    return SchedulerConfig.from_env()


@lru_cache(maxsize=1)
def default_catalog() -> PhaseCatalog:
    """
    Return the process-wide phase catalog.

    Returns
    -------
    PhaseCatalog
        Catalog built from ``default_config()``.
    """
    return default_config().build_catalog()


def reset_defaults() -> None:
    """Drop the cached configuration so the next access re-reads the environment."""
    default_config.cache_clear()
    default_catalog.cache_clear()


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
