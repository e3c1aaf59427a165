"""Error taxonomy and Problem Details helpers for rule ordering."""

from __future__ import annotations

import json
import logging
from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import uuid4

Direction = Literal["after", "before"]


def generate_correlation_id() -> str:
    """
    Return a new correlation identifier for tracing errors.

    Returns
    -------
    str
        UUID4 correlation identifier.
    """
    return str(uuid4())


def describe_ref(ref: Hashable) -> str:
    """
    Render an implementation reference for messages.

    Returns
    -------
    str
        Qualified name for classes and functions, ``repr`` otherwise.
    """
    qualname = getattr(ref, "__qualname__", None)
    if isinstance(qualname, str):
        module = getattr(ref, "__module__", None)
        return f"{module}.{qualname}" if module else qualname
    return repr(ref)


@dataclass(frozen=True)
class ProblemDetail:
    """
    RFC 9457 Problem Details payload.

    Fields mirror the standard shape with optional extras for diagnostics.
    """

    type: str
    title: str
    detail: str
    instance: str = field(default_factory=generate_correlation_id)
    code: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to a JSON-friendly dict.

        Returns
        -------
        dict[str, Any]
            Problem detail payload as a plain dictionary.
        """
        payload: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "detail": self.detail,
            "instance": self.instance,
        }
        if self.code is not None:
            payload["code"] = self.code
        if self.extras:
            payload["extras"] = self.extras
        return payload


def problem(
    code: str,
    title: str,
    detail: str,
    *,
    instance: str | None = None,
    extras: dict[str, Any] | None = None,
) -> ProblemDetail:
    """
    Create a ProblemDetail with defaults for type/instance.

    Parameters
    ----------
    code
        Stable problem code (e.g., 'schedule.cycle').
    title
        Human-readable error summary.
    detail
        Detailed description of the error.
    instance
        Correlation/trace identifier; defaults to a UUID4.
    extras
        Optional structured context for diagnostics.

    Returns
    -------
    ProblemDetail
        Structured problem payload.
    """
    return ProblemDetail(
        type=f"https://problems.ruleorder.dev/{code}",
        title=title,
        detail=detail,
        instance=instance or generate_correlation_id(),
        code=code,
        extras=extras or {},
    )


def log_problem(logger: logging.Logger | logging.LoggerAdapter, detail: ProblemDetail) -> None:
    """Emit a Problem Detail as a structured error log."""
    logger.error(json.dumps(detail.to_dict(), sort_keys=True))


class ProblemError(Exception):
    """Base exception carrying a ProblemDetail payload."""

    def __init__(self, detail: ProblemDetail) -> None:
        super().__init__(detail.detail)
        self.problem_detail = detail


class OrderingError(ProblemError):
    """Base class for fatal metadata and scheduling failures."""


class InvalidMetadataError(OrderingError):
    """Provider metadata is missing a required value or holds a malformed entry."""

    def __init__(self, message: str, *, provider_id: str | None = None) -> None:
        super().__init__(
            problem(
                "metadata.invalid",
                "Invalid rule provider metadata",
                message,
                extras={"provider_id": provider_id} if provider_id else None,
            )
        )
        self.provider_id = provider_id


class UnknownPhaseError(OrderingError):
    """A phase is not part of the active phase catalog."""

    def __init__(self, phase: object, *, known: Iterable[str] = ()) -> None:
        known_phases = list(known)
        message = f"Unknown rule phase: {phase!r}"
        if known_phases:
            message = f"{message} (known phases: {', '.join(known_phases)})"
        super().__init__(
            problem(
                "phase.unknown",
                "Unknown phase",
                message,
                extras={"phase": str(phase), "known": known_phases},
            )
        )
        self.phase = phase


class CrossPhaseConflictError(OrderingError):
    """
    An ordering constraint contradicts the relative order of two phases.

    Parameters
    ----------
    owner_id
        Provider that declared the constraint.
    target_id
        Provider named by the constraint.
    direction
        ``"after"`` when the owner must run after the target, ``"before"`` otherwise.
    owner_phase, target_phase
        Phases of the two providers.
    """

    def __init__(
        self,
        owner_id: str,
        target_id: str,
        *,
        direction: Direction,
        owner_phase: str,
        target_phase: str,
    ) -> None:
        message = (
            f"Rule provider {owner_id!r} (phase {owner_phase!r}) must run {direction} "
            f"{target_id!r} (phase {target_phase!r}), but the phase order forbids it"
        )
        super().__init__(
            problem(
                "schedule.cross_phase_conflict",
                "Cross-phase ordering conflict",
                message,
                extras={
                    "owner_id": owner_id,
                    "target_id": target_id,
                    "direction": direction,
                    "owner_phase": owner_phase,
                    "target_phase": target_phase,
                },
            )
        )
        self.owner_id = owner_id
        self.target_id = target_id
        self.direction = direction


class CyclicDependencyError(OrderingError):
    """
    Providers within one phase cannot be linearized.

    ``provider_ids`` holds every provider left unresolved by the sort, sorted
    by id; ``cycle`` holds one concrete cycle among them when one was found.
    """

    def __init__(
        self,
        phase: str,
        provider_ids: Iterable[str],
        *,
        cycle: Iterable[str] = (),
    ) -> None:
        ids = sorted(provider_ids)
        cycle_ids = list(cycle)
        message = f"Circular dependencies detected in phase {phase!r}: {ids}"
        if cycle_ids:
            message = f"{message}; cycle: {' -> '.join([*cycle_ids, cycle_ids[0]])}"
        super().__init__(
            problem(
                "schedule.cycle",
                "Cyclic rule provider dependencies",
                message,
                extras={"phase": phase, "provider_ids": ids, "cycle": cycle_ids},
            )
        )
        self.phase = phase
        self.provider_ids = tuple(ids)
        self.cycle = tuple(cycle_ids)


class UnresolvedReferenceWarning(UserWarning):
    """
    A before/after reference names a provider absent from the working set.

    The constraint is dropped and scheduling proceeds.
    """

    def __init__(self, owner_id: str, reference: Hashable, *, direction: Direction) -> None:
        self.owner_id = owner_id
        self.reference = reference
        self.direction = direction
        super().__init__(
            f"Rule provider {owner_id!r} declares execute {direction} "
            f"{self.reference_name!r}, which is not in the working set"
        )

    @property
    def reference_name(self) -> str:
        """Readable name of the unresolved reference."""
        if isinstance(self.reference, str):
            return self.reference
        return describe_ref(self.reference)

    def key(self) -> tuple[str, str, str]:
        """Identity used to de-duplicate repeated warnings."""
        return (self.owner_id, self.direction, self.reference_name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnresolvedReferenceWarning):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())


class UnresolvedReferenceError(OrderingError):
    """Raised instead of a warning when unresolved references are configured as fatal."""

    def __init__(self, warning: UnresolvedReferenceWarning) -> None:
        super().__init__(
            problem(
                "schedule.unresolved_reference",
                "Unresolved rule provider reference",
                str(warning),
                extras={
                    "owner_id": warning.owner_id,
                    "reference": warning.reference_name,
                    "direction": warning.direction,
                },
            )
        )
        self.warning = warning


__all__ = [
    "CrossPhaseConflictError",
    "CyclicDependencyError",
    "Direction",
    "InvalidMetadataError",
    "OrderingError",
    "ProblemDetail",
    "ProblemError",
    "UnknownPhaseError",
    "UnresolvedReferenceError",
    "UnresolvedReferenceWarning",
    "describe_ref",
    "generate_correlation_id",
    "log_problem",
    "problem",
]
