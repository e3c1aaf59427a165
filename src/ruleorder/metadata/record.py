"""Immutable scheduling metadata for a single rule provider."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from ruleorder.errors import Direction, describe_ref

ReferenceKind = Literal["ref", "id"]


@dataclass(frozen=True)
class RuleProviderMetadata:
    """
    Frozen description of one provider's scheduling constraints.

    Parameters
    ----------
    id
        Provider identifier, unique within a working set.
    implementation_ref
        Stable identity of the provider implementation (normally its class).
    phase
        Phase catalog entry the provider runs in.
    origin
        Free-text description of where the provider came from.
    execute_after, execute_before
        Implementation refs of providers this one runs after/before.
    execute_after_ids, execute_before_ids
        Ids of providers this one runs after/before.
    tags
        Informational tags; no ordering effect.
    """

    id: str
    implementation_ref: Hashable
    phase: str
    origin: str = ""
    execute_after: tuple[Hashable, ...] = ()
    execute_after_ids: tuple[str, ...] = ()
    execute_before: tuple[Hashable, ...] = ()
    execute_before_ids: tuple[str, ...] = ()
    tags: frozenset[str] = field(default_factory=frozenset)

    def has_tag(self, tag: str) -> bool:
        """Return True when the provider carries ``tag`` (compared after trimming)."""
        return tag.strip() in self.tags

    def references(self) -> Iterator[tuple[Direction, ReferenceKind, Hashable]]:
        """
        Iterate every declared ordering reference in declaration order.

        Yields
        ------
        tuple[Direction, ReferenceKind, Hashable]
            ``(direction, kind, target)`` where ``kind`` tells whether ``target``
            is an implementation ref or a provider id.
        """
        for ref in self.execute_after:
            yield "after", "ref", ref
        for provider_id in self.execute_after_ids:
            yield "after", "id", provider_id
        for ref in self.execute_before:
            yield "before", "ref", ref
        for provider_id in self.execute_before_ids:
            yield "before", "id", provider_id

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to a JSON-friendly dict.

        Returns
        -------
        dict[str, Any]
            Metadata with implementation refs rendered as qualified names.
        """
        return {
            "id": self.id,
            "implementation": describe_ref(self.implementation_ref),
            "phase": self.phase,
            "origin": self.origin,
            "execute_after": [describe_ref(ref) for ref in self.execute_after],
            "execute_after_ids": list(self.execute_after_ids),
            "execute_before": [describe_ref(ref) for ref in self.execute_before],
            "execute_before_ids": list(self.execute_before_ids),
            "tags": sorted(self.tags),
        }


__all__ = ["ReferenceKind", "RuleProviderMetadata"]
