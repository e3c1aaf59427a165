"""Per-phase "must-precede" graphs built from a working set of provider metadata."""

from __future__ import annotations

import heapq
import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field

import networkx as nx

from ruleorder.errors import (
    CrossPhaseConflictError,
    CyclicDependencyError,
    Direction,
    InvalidMetadataError,
    UnresolvedReferenceError,
    UnresolvedReferenceWarning,
)
from ruleorder.metadata.record import ReferenceKind, RuleProviderMetadata
from ruleorder.phases import PhaseCatalog

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderIndex:
    """Lookup tables resolving references by provider id or implementation ref."""

    by_id: Mapping[str, RuleProviderMetadata]
    by_ref: Mapping[Hashable, tuple[RuleProviderMetadata, ...]]

    @classmethod
    def build(cls, records: Iterable[RuleProviderMetadata]) -> ProviderIndex:
        """
        Index a working set, rejecting duplicate ids.

        Records sharing an implementation ref are all reachable through it,
        sorted by id.

        Returns
        -------
        ProviderIndex
            Index over the working set.

        Raises
        ------
        InvalidMetadataError
            If two records share an id or a record has a blank id.
        """
        by_id: dict[str, RuleProviderMetadata] = {}
        by_ref: dict[Hashable, list[RuleProviderMetadata]] = {}
        for record in records:
            if not isinstance(record.id, str) or not record.id:
                message = f"Rule provider metadata requires a non-empty id, got {record.id!r}"
                raise InvalidMetadataError(message)
            if record.id in by_id:
                message = f"Duplicate rule provider id in working set: {record.id!r}"
                raise InvalidMetadataError(message, provider_id=record.id)
            by_id[record.id] = record
            by_ref.setdefault(record.implementation_ref, []).append(record)
        return cls(
            by_id=dict(sorted(by_id.items())),
            by_ref={
                ref: tuple(sorted(group, key=lambda item: item.id))
                for ref, group in by_ref.items()
            },
        )

    def resolve(self, kind: ReferenceKind, target: Hashable) -> tuple[RuleProviderMetadata, ...]:
        """
        Return the records a reference names; empty when none are present.

        Returns
        -------
        tuple[RuleProviderMetadata, ...]
            Matching records sorted by id.
        """
        if kind == "id":
            record = self.by_id.get(target) if isinstance(target, str) else None
            return (record,) if record is not None else ()
        return self.by_ref.get(target, ())

    def __len__(self) -> int:
        return len(self.by_id)


def linearize_phase(graph: nx.DiGraph, phase: str) -> list[str]:
    """
    Topologically sort one phase graph, breaking ties by ascending id.

    Parameters
    ----------
    graph
        Directed graph whose edges point from the provider that must run first.
    phase
        Phase name, used for error reporting.

    Returns
    -------
    list[str]
        Provider ids in execution order.

    Raises
    ------
    CyclicDependencyError
        If some providers cannot be ordered; lists every unresolved id.
    """
    in_degree = dict(graph.in_degree())
    ready = [node for node, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    ordered: list[str] = []
    while ready:
        node = heapq.heappop(ready)
        ordered.append(node)
        for successor in graph.successors(node):
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                heapq.heappush(ready, successor)

    if len(ordered) < graph.number_of_nodes():
        done = set(ordered)
        remaining = sorted(node for node in graph if node not in done)
        residual = graph.subgraph(remaining)
        try:
            cycle = [source for source, _target in nx.find_cycle(residual)]
        except nx.NetworkXNoCycle:
            cycle = []
        raise CyclicDependencyError(phase, remaining, cycle=cycle)
    return ordered


@dataclass
class DependencyGraph:
    """
    Ephemeral dependency structure for one scheduling run.

    One ``nx.DiGraph`` per phase present in the working set; nodes are provider
    ids and an edge ``u -> v`` means ``u`` must run before ``v``. Cross-phase
    constraints never become edges: consistent ones are already satisfied by
    phase order, contradictory ones raise ``CrossPhaseConflictError``.
    """

    catalog: PhaseCatalog
    index: ProviderIndex
    phase_graphs: dict[str, nx.DiGraph] = field(default_factory=dict)
    warnings: list[UnresolvedReferenceWarning] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        records: Iterable[RuleProviderMetadata],
        catalog: PhaseCatalog,
        *,
        strict_references: bool = False,
    ) -> DependencyGraph:
        """
        Build per-phase graphs from a working set.

        Parameters
        ----------
        records
            Working set of frozen provider metadata.
        catalog
            Phase catalog defining phase order.
        strict_references
            Raise instead of warning when a reference names an absent provider.

        Returns
        -------
        DependencyGraph
            Graph with one phase graph per populated phase, in phase order.

        Raises
        ------
        InvalidMetadataError
            On duplicate ids or a record referencing itself.
        UnknownPhaseError
            If a record's phase is not part of the catalog.
        CrossPhaseConflictError
            If a constraint contradicts the phase order.
        UnresolvedReferenceError
            If ``strict_references`` is set and a reference cannot be resolved.
        """
        index = ProviderIndex.build(records)
        for record in index.by_id.values():
            catalog.require(record.phase)
        phases = sorted(
            {record.phase for record in index.by_id.values()},
            key=catalog.index_of,
        )
        dependency_graph = cls(
            catalog=catalog,
            index=index,
            phase_graphs={phase: nx.DiGraph(phase=phase) for phase in phases},
        )
        for record in index.by_id.values():
            dependency_graph.phase_graphs[record.phase].add_node(record.id, metadata=record)
        seen: set[UnresolvedReferenceWarning] = set()
        for record in index.by_id.values():
            for direction, kind, target in record.references():
                targets = index.resolve(kind, target)
                if not targets:
                    warning = UnresolvedReferenceWarning(record.id, target, direction=direction)
                    if strict_references:
                        raise UnresolvedReferenceError(warning)
                    if warning not in seen:
                        seen.add(warning)
                        dependency_graph.warnings.append(warning)
                    continue
                for other in targets:
                    dependency_graph._add_constraint(record, other, direction)
        return dependency_graph

    def _add_constraint(
        self,
        owner: RuleProviderMetadata,
        target: RuleProviderMetadata,
        direction: Direction,
    ) -> None:
        if owner.id == target.id:
            message = f"Rule provider {owner.id!r} declares an ordering constraint on itself"
            raise InvalidMetadataError(message, provider_id=owner.id)
        first, second = (target, owner) if direction == "after" else (owner, target)
        if first.phase == second.phase:
            self.phase_graphs[first.phase].add_edge(first.id, second.id)
            return
        if self.catalog.index_of(first.phase) > self.catalog.index_of(second.phase):
            raise CrossPhaseConflictError(
                owner.id,
                target.id,
                direction=direction,
                owner_phase=owner.phase,
                target_phase=target.phase,
            )

    @property
    def phases(self) -> tuple[str, ...]:
        """Populated phases in execution order."""
        return tuple(self.phase_graphs)

    def edges(self) -> list[tuple[str, str]]:
        """
        Return every same-phase precedence edge.

        Returns
        -------
        list[tuple[str, str]]
            ``(first, second)`` pairs sorted by phase order then id.
        """
        return [
            edge
            for graph in self.phase_graphs.values()
            for edge in sorted(graph.edges())
        ]

    def linearize(self) -> list[RuleProviderMetadata]:
        """
        Order every provider: phases in catalog order, each phase topologically.

        Returns
        -------
        list[RuleProviderMetadata]
            Providers in execution order.

        Raises
        ------
        CyclicDependencyError
            If any phase graph contains a cycle.
        """
        ordered: list[RuleProviderMetadata] = []
        for phase, graph in self.phase_graphs.items():
            phase_ids = linearize_phase(graph, phase)
            log.debug("Ordered %d rule providers in phase %s", len(phase_ids), phase)
            ordered.extend(self.index.by_id[provider_id] for provider_id in phase_ids)
        return ordered


__all__ = [
    "DependencyGraph",
    "ProviderIndex",
    "linearize_phase",
]
