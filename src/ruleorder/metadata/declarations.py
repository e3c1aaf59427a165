"""Declared ordering defaults supplied by a declaration reader."""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from ruleorder.errors import InvalidMetadataError

_COLLECTION_FIELDS = ("after_refs", "after_ids", "before_refs", "before_ids", "tags")


def _freeze(values: Sequence[Hashable], field_name: str) -> tuple[Hashable, ...]:
    if isinstance(values, (str, bytes)):
        message = f"{field_name} must be a collection, got the bare string {values!r}"
        raise InvalidMetadataError(message)
    return tuple(values)


@dataclass(frozen=True)
class DeclaredConstraints:
    """
    Raw constraint tuple declared for one provider implementation.

    Any field may be empty; empty fields leave builder defaults untouched.
    """

    provider_id: str | None = None
    after_refs: tuple[Hashable, ...] = ()
    after_ids: tuple[str, ...] = ()
    before_refs: tuple[Hashable, ...] = ()
    before_ids: tuple[str, ...] = ()
    phase: str | None = None
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Reject bare strings where a collection is declared."""
        for name in _COLLECTION_FIELDS:
            _freeze(getattr(self, name), name)

    @classmethod
    def of(  # noqa: PLR0913
        cls,
        *,
        provider_id: str | None = None,
        after: Sequence[Hashable] = (),
        after_ids: Sequence[str] = (),
        before: Sequence[Hashable] = (),
        before_ids: Sequence[str] = (),
        phase: str | None = None,
        tags: Sequence[str] = (),
    ) -> DeclaredConstraints:
        """
        Build a declaration from arbitrary sequences.

        Returns
        -------
        DeclaredConstraints
            Declaration with every collection frozen to a tuple.

        Raises
        ------
        InvalidMetadataError
            If a bare string is passed where a collection is expected.
        """
        return cls(
            provider_id=provider_id,
            after_refs=_freeze(after, "after"),
            after_ids=_freeze(after_ids, "after_ids"),
            before_refs=_freeze(before, "before"),
            before_ids=_freeze(before_ids, "before_ids"),
            phase=phase,
            tags=_freeze(tags, "tags"),
        )

    def is_empty(self) -> bool:
        """Return True when nothing beyond the id is declared."""
        return not (
            self.after_refs
            or self.after_ids
            or self.before_refs
            or self.before_ids
            or self.phase
            or self.tags
        )


class DeclarationReader(Protocol):
    """Source of declared defaults for provider implementations."""

    def read(self, implementation_ref: Hashable) -> DeclaredConstraints | None:
        """Return the declared constraints for an implementation, if any."""
        ...


@dataclass(frozen=True)
class MappingDeclarationReader:
    """DeclarationReader backed by a mapping of implementation ref to declaration."""

    declarations: Mapping[Hashable, DeclaredConstraints] = field(default_factory=dict)

    def read(self, implementation_ref: Hashable) -> DeclaredConstraints | None:
        """
        Look up the declaration for an implementation.

        Returns
        -------
        DeclaredConstraints | None
            The registered declaration, or None when nothing is declared.
        """
        return self.declarations.get(implementation_ref)


def simple_name(implementation_ref: Hashable) -> str:
    """
    Derive a default provider id from an implementation reference.

    Returns
    -------
    str
        ``__name__`` for classes and functions, ``str(ref)`` otherwise.
    """
    name = getattr(implementation_ref, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return str(implementation_ref)


def describe_origin(implementation_ref: Hashable) -> str:
    """
    Describe where an implementation was loaded from.

    Returns
    -------
    str
        Text such as ``"pkg.rules.JavaScan loaded from pkg.rules"``.
    """
    qualname = getattr(implementation_ref, "__qualname__", None)
    module = getattr(implementation_ref, "__module__", None)
    if isinstance(qualname, str) and isinstance(module, str):
        return f"{module}.{qualname} loaded from {module}"
    return f"{implementation_ref!r}"


__all__ = [
    "DeclarationReader",
    "DeclaredConstraints",
    "MappingDeclarationReader",
    "describe_origin",
    "simple_name",
]
