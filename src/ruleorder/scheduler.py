"""Compute the execution order of rule providers."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from ruleorder.config import SchedulerConfig, default_config
from ruleorder.errors import OrderingError, UnresolvedReferenceWarning, log_problem
from ruleorder.graph import DependencyGraph
from ruleorder.metadata.record import RuleProviderMetadata
from ruleorder.phases import PhaseCatalog

log = logging.getLogger(__name__)


class HasMetadata(Protocol):
    """Anything carrying frozen provider metadata (e.g. a rule provider instance)."""

    @property
    def metadata(self) -> RuleProviderMetadata:
        """Scheduling metadata of the provider."""
        ...


P = TypeVar("P", bound=HasMetadata)


@dataclass(frozen=True)
class ScheduleResult:
    """
    Ordered providers produced by one scheduling run.

    Parameters
    ----------
    providers
        Provider metadata in execution order; phase boundaries are implicit.
    warnings
        Unresolved references whose constraints were dropped.
    """

    providers: tuple[RuleProviderMetadata, ...]
    warnings: tuple[UnresolvedReferenceWarning, ...] = ()
    _positions: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Index provider positions for constant-time lookup."""
        positions = {record.id: position for position, record in enumerate(self.providers)}
        object.__setattr__(self, "_positions", positions)

    @property
    def ids(self) -> tuple[str, ...]:
        """Provider ids in execution order."""
        return tuple(record.id for record in self.providers)

    @property
    def implementation_refs(self) -> tuple[Hashable, ...]:
        """Implementation refs in execution order (repeats kept for shared implementations)."""
        return tuple(record.implementation_ref for record in self.providers)

    def phases(self) -> tuple[str, ...]:
        """
        Return the populated phases in execution order.

        Returns
        -------
        tuple[str, ...]
            Each phase once, in the order its providers appear.
        """
        return tuple(dict.fromkeys(record.phase for record in self.providers))

    def by_phase(self) -> dict[str, tuple[RuleProviderMetadata, ...]]:
        """
        Group providers by phase, preserving execution order.

        Returns
        -------
        dict[str, tuple[RuleProviderMetadata, ...]]
            Phase to ordered providers, phases in execution order.
        """
        grouped: dict[str, list[RuleProviderMetadata]] = {}
        for record in self.providers:
            grouped.setdefault(record.phase, []).append(record)
        return {phase: tuple(records) for phase, records in grouped.items()}

    def position(self, provider_id: str) -> int:
        """
        Return the zero-based execution position of a provider.

        Raises
        ------
        KeyError
            If the provider is not part of this schedule.
        """
        try:
            return self._positions[provider_id]
        except KeyError:
            message = f"Unknown rule provider: {provider_id}"
            raise KeyError(message) from None

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to a JSON-friendly dict.

        Returns
        -------
        dict[str, Any]
            Ordered ids grouped by phase plus warning messages.
        """
        return {
            "order": list(self.ids),
            "phases": {
                phase: [record.id for record in records]
                for phase, records in self.by_phase().items()
            },
            "warnings": [str(warning) for warning in self.warnings],
        }

    def __iter__(self) -> Iterator[RuleProviderMetadata]:
        return iter(self.providers)

    def __len__(self) -> int:
        return len(self.providers)

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._positions


def schedule(
    working_set: Iterable[RuleProviderMetadata],
    catalog: PhaseCatalog | None = None,
    *,
    config: SchedulerConfig | None = None,
) -> ScheduleResult:
    """
    Compute a deterministic execution order for a working set of providers.

    Phases run in catalog order; within a phase, declared before/after
    constraints are honoured and otherwise-unconstrained providers run in
    ascending id order.

    Parameters
    ----------
    working_set
        Frozen provider metadata to order; ids must be unique.
    catalog
        Phase catalog; defaults to the catalog described by ``config``.
    config
        Scheduler settings; defaults to the process-wide configuration.

    Returns
    -------
    ScheduleResult
        Ordered providers plus any unresolved-reference warnings.

    Raises
    ------
    InvalidMetadataError
        On duplicate ids or self-referencing constraints.
    UnknownPhaseError
        If a provider's phase is not part of the catalog.
    CrossPhaseConflictError
        If a constraint contradicts the phase order.
    CyclicDependencyError
        If providers within a phase cannot be linearized.
    UnresolvedReferenceError
        If references must resolve (``strict_references``) and one does not.
    """
    settings = config if config is not None else default_config()
    active_catalog = catalog if catalog is not None else settings.build_catalog()
    records = tuple(working_set)
    log.debug(
        "Scheduling %d rule providers across %d phases",
        len(records),
        len(active_catalog),
    )
    try:
        graph = DependencyGraph.build(
            records,
            active_catalog,
            strict_references=settings.strict_references,
        )
        ordered = graph.linearize()
    except OrderingError as exc:
        log_problem(log, exc.problem_detail)
        raise
    if settings.log_warnings:
        for warning in graph.warnings:
            log.warning("%s; constraint dropped", warning)
    return ScheduleResult(providers=tuple(ordered), warnings=tuple(graph.warnings))


def order_providers(
    providers: Sequence[P],
    catalog: PhaseCatalog | None = None,
    *,
    config: SchedulerConfig | None = None,
) -> tuple[list[P], ScheduleResult]:
    """
    Order provider objects by their metadata.

    Returns
    -------
    tuple[list[P], ScheduleResult]
        Providers in execution order and the underlying schedule.
    """
    by_id = {provider.metadata.id: provider for provider in providers}
    result = schedule(
        (provider.metadata for provider in providers),
        catalog,
        config=config,
    )
    return [by_id[provider_id] for provider_id in result.ids], result


__all__ = [
    "HasMetadata",
    "ScheduleResult",
    "order_providers",
    "schedule",
]
