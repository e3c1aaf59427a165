"""Fluent builder producing validated ``RuleProviderMetadata`` records."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable
from typing import TypeVar

from ruleorder.config import default_catalog
from ruleorder.errors import InvalidMetadataError
from ruleorder.metadata.declarations import (
    DeclarationReader,
    DeclaredConstraints,
    describe_origin,
    simple_name,
)
from ruleorder.metadata.record import RuleProviderMetadata
from ruleorder.phases import PhaseCatalog

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)


def _dedup(items: Iterable[T]) -> tuple[T, ...]:
    """Drop repeated entries while keeping first-seen order."""
    return tuple(dict.fromkeys(items))


def _check_ref(ref: object, *, provider_id: str, field_name: str) -> Hashable:
    if ref is None:
        message = f"{field_name} entries must not be None"
        raise InvalidMetadataError(message, provider_id=provider_id)
    try:
        hash(ref)
    except TypeError:
        message = f"{field_name} entry {ref!r} is not a hashable implementation reference"
        raise InvalidMetadataError(message, provider_id=provider_id) from None
    return ref


def _check_id(value: object, *, provider_id: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        message = f"{field_name} entries must be non-blank strings, got {value!r}"
        raise InvalidMetadataError(message, provider_id=provider_id)
    return value


class MetadataBuilder:
    """
    Mutable accumulator for one provider's scheduling metadata.

    A builder is seeded once with declared defaults, adjusted through the
    ``set_*``/``add_*`` methods, then frozen with :meth:`build`. Every getter
    falls back to the builder default when the value was never set.

    Parameters
    ----------
    provider_id
        Identifier of the provider; must be a non-empty string.
    implementation_ref
        Stable identity of the provider implementation; must not be None.
    catalog
        Phase catalog used to resolve and validate the phase. Defaults to the
        process-wide catalog.

    Raises
    ------
    InvalidMetadataError
        If the id or implementation reference is missing.
    """

    def __init__(
        self,
        provider_id: str,
        implementation_ref: Hashable,
        *,
        catalog: PhaseCatalog | None = None,
    ) -> None:
        if not isinstance(provider_id, str) or not provider_id.strip():
            message = f"Rule provider ID must be a non-empty string, got {provider_id!r}"
            raise InvalidMetadataError(message)
        if implementation_ref is None:
            message = "Rule provider implementation reference must not be None"
            raise InvalidMetadataError(message, provider_id=provider_id)
        self._id = provider_id
        self._implementation_ref = implementation_ref
        self._catalog = catalog
        self._default_origin = describe_origin(implementation_ref)
        self._origin: str | None = None
        self._phase: str | None = None
        self._execute_after: list[Hashable] = []
        self._execute_after_ids: list[str] = []
        self._execute_before: list[Hashable] = []
        self._execute_before_ids: list[str] = []
        self._tags: list[str] = []
        self._seeded = False
        self._overridden = False

    @classmethod
    def create(
        cls,
        provider_id: str,
        implementation_ref: Hashable,
        *,
        catalog: PhaseCatalog | None = None,
    ) -> MetadataBuilder:
        """
        Create an unseeded builder.

        Returns
        -------
        MetadataBuilder
            Builder with no declared defaults applied.
        """
        return cls(provider_id, implementation_ref, catalog=catalog)

    @classmethod
    def for_provider(
        cls,
        implementation_ref: Hashable,
        provider_id: str | None = None,
        *,
        reader: DeclarationReader | None = None,
        catalog: PhaseCatalog | None = None,
    ) -> MetadataBuilder:
        """
        Create a builder for an implementation, seeded from its declaration.

        The id is, in order of preference, ``provider_id``, the declared id,
        or the implementation's simple name.

        Returns
        -------
        MetadataBuilder
            Builder seeded with declared defaults when the reader has any.

        Raises
        ------
        InvalidMetadataError
            If the implementation reference is None.
        """
        if implementation_ref is None:
            message = "Rule provider implementation reference must not be None"
            raise InvalidMetadataError(message)
        declared = reader.read(implementation_ref) if reader is not None else None
        resolved_id = provider_id
        if resolved_id is None and declared is not None and declared.provider_id:
            resolved_id = declared.provider_id
        if resolved_id is None:
            resolved_id = simple_name(implementation_ref)
        builder = cls(resolved_id, implementation_ref, catalog=catalog)
        if declared is not None:
            builder.seed_from_defaults(declared)
        return builder

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed_from_defaults(self, declared: DeclaredConstraints) -> MetadataBuilder:
        """
        Initialize builder fields from a declared constraint tuple.

        Empty fields of the declaration leave the corresponding builder field
        untouched.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.

        Raises
        ------
        InvalidMetadataError
            If the builder was already seeded or already overridden.
        """
        if self._seeded:
            message = "Declared defaults may only be applied once"
            raise InvalidMetadataError(message, provider_id=self._id)
        if self._overridden:
            message = "Declared defaults must be applied before explicit overrides"
            raise InvalidMetadataError(message, provider_id=self._id)
        if declared.after_refs:
            self._execute_after = self._refs(declared.after_refs, "execute_after")
        if declared.after_ids:
            self._execute_after_ids = self._ids(declared.after_ids, "execute_after_ids")
        if declared.before_refs:
            self._execute_before = self._refs(declared.before_refs, "execute_before")
        if declared.before_ids:
            self._execute_before_ids = self._ids(declared.before_ids, "execute_before_ids")
        if declared.phase:
            self._phase = declared.phase
        if declared.tags:
            self._tags = []
            self._append_tags(declared.tags)
        self._seeded = True
        log.debug("Seeded declared defaults for rule provider %s", self._id)
        return self

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def set_origin(self, origin: str | None) -> MetadataBuilder:
        """
        Set where the provider was loaded from (file path, addon coordinate, ...).

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._origin = origin
        return self

    def set_phase(self, phase: str | None) -> MetadataBuilder:
        """
        Set the phase the provider runs in; None restores the catalog default.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._phase = phase
        return self

    def set_execute_after(self, refs: Iterable[Hashable]) -> MetadataBuilder:
        """
        Replace the implementation refs this provider must run after.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._execute_after = self._refs(refs, "execute_after")
        return self

    def add_execute_after(self, ref: Hashable | None) -> MetadataBuilder:
        """
        Add an implementation ref this provider must run after; None is ignored.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        if ref is not None:
            self._append(self._execute_after, self._refs((ref,), "execute_after"))
        return self

    def set_execute_after_ids(self, provider_ids: Iterable[str]) -> MetadataBuilder:
        """
        Replace the provider ids this provider must run after.

        Ids serve providers that cannot name each other by implementation, such
        as one implementation hosting many rules with their own ids.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._execute_after_ids = self._ids(provider_ids, "execute_after_ids")
        return self

    def add_execute_after_id(self, provider_id: str | None) -> MetadataBuilder:
        """
        Add a provider id this provider must run after; None is ignored.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        if provider_id is not None:
            self._append(self._execute_after_ids, self._ids((provider_id,), "execute_after_ids"))
        return self

    def set_execute_before(self, refs: Iterable[Hashable]) -> MetadataBuilder:
        """
        Replace the implementation refs this provider must run before.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._execute_before = self._refs(refs, "execute_before")
        return self

    def add_execute_before(self, ref: Hashable | None) -> MetadataBuilder:
        """
        Add an implementation ref this provider must run before; None is ignored.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        if ref is not None:
            self._append(self._execute_before, self._refs((ref,), "execute_before"))
        return self

    def set_execute_before_ids(self, provider_ids: Iterable[str]) -> MetadataBuilder:
        """
        Replace the provider ids this provider must run before.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._execute_before_ids = self._ids(provider_ids, "execute_before_ids")
        return self

    def add_execute_before_id(self, provider_id: str | None) -> MetadataBuilder:
        """
        Add a provider id this provider must run before; None is ignored.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        if provider_id is not None:
            self._append(
                self._execute_before_ids, self._ids((provider_id,), "execute_before_ids")
            )
        return self

    def add_tags(self, tag: str | None, *tags: str | None) -> MetadataBuilder:
        """
        Add tags, trimming each and silently dropping blank ones.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        self._overridden = True
        self._append_tags((tag, *tags))
        return self

    def set_tags(self, tags: Iterable[str | None] | None) -> MetadataBuilder:
        """
        Replace all tags; None clears them.

        Returns
        -------
        MetadataBuilder
            This builder, for chaining.
        """
        if isinstance(tags, (str, bytes)):
            message = "tags must be a collection of tags; use add_tags for a single tag"
            raise InvalidMetadataError(message, provider_id=self._id)
        self._overridden = True
        self._tags = []
        if tags is not None:
            self._append_tags(tags)
        return self

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        """Provider identifier."""
        return self._id

    @property
    def implementation_ref(self) -> Hashable:
        """Provider implementation identity."""
        return self._implementation_ref

    @property
    def catalog(self) -> PhaseCatalog:
        """Catalog used for phase defaults and validation."""
        return self._catalog if self._catalog is not None else default_catalog()

    @property
    def origin(self) -> str:
        """Explicit origin, else a description derived from the implementation."""
        return self._origin if self._origin is not None else self._default_origin

    @property
    def phase(self) -> str:
        """Explicit or declared phase, else the catalog default."""
        return self._phase if self._phase is not None else self.catalog.default_phase()

    @property
    def execute_after(self) -> tuple[Hashable, ...]:
        """Implementation refs this provider runs after."""
        return tuple(self._execute_after)

    @property
    def execute_after_ids(self) -> tuple[str, ...]:
        """Provider ids this provider runs after."""
        return tuple(self._execute_after_ids)

    @property
    def execute_before(self) -> tuple[Hashable, ...]:
        """Implementation refs this provider runs before."""
        return tuple(self._execute_before)

    @property
    def execute_before_ids(self) -> tuple[str, ...]:
        """Provider ids this provider runs before."""
        return tuple(self._execute_before_ids)

    @property
    def tags(self) -> frozenset[str]:
        """Normalized tags."""
        return frozenset(self._tags)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self) -> RuleProviderMetadata:
        """
        Freeze the builder state into a validated metadata record.

        Returns
        -------
        RuleProviderMetadata
            Immutable record with defaults resolved and collections de-duplicated.

        Raises
        ------
        InvalidMetadataError
            If a constraint references the provider itself.
        UnknownPhaseError
            If the resolved phase is not part of the catalog.
        """
        phase = self.catalog.require(self.phase)

        after_refs = _dedup(self._execute_after)
        before_refs = _dedup(self._execute_before)
        after_ids = _dedup(self._execute_after_ids)
        before_ids = _dedup(self._execute_before_ids)
        if self._implementation_ref in after_refs or self._implementation_ref in before_refs:
            message = f"Rule provider {self._id!r} references its own implementation"
            raise InvalidMetadataError(message, provider_id=self._id)
        if self._id in after_ids or self._id in before_ids:
            message = f"Rule provider {self._id!r} references its own id"
            raise InvalidMetadataError(message, provider_id=self._id)

        return RuleProviderMetadata(
            id=self._id,
            implementation_ref=self._implementation_ref,
            phase=phase,
            origin=self.origin,
            execute_after=after_refs,
            execute_after_ids=after_ids,
            execute_before=before_refs,
            execute_before_ids=before_ids,
            tags=self.tags,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _refs(self, refs: Iterable[Hashable], field_name: str) -> list[Hashable]:
        if refs is None or isinstance(refs, (str, bytes)):
            message = f"{field_name} must be a collection of implementation references"
            raise InvalidMetadataError(message, provider_id=self._id)
        checked = [_check_ref(ref, provider_id=self._id, field_name=field_name) for ref in refs]
        return list(_dedup(checked))

    def _ids(self, provider_ids: Iterable[str], field_name: str) -> list[str]:
        if provider_ids is None or isinstance(provider_ids, (str, bytes)):
            message = f"{field_name} must be a collection of provider ids"
            raise InvalidMetadataError(message, provider_id=self._id)
        checked = [
            _check_id(value, provider_id=self._id, field_name=field_name)
            for value in provider_ids
        ]
        return list(_dedup(checked))

    @staticmethod
    def _append(target: list[T], values: Iterable[T]) -> None:
        for value in values:
            if value not in target:
                target.append(value)

    def _append_tags(self, tags: Iterable[str | None]) -> None:
        for tag in tags:
            if tag is None or not isinstance(tag, str) or not tag.strip():
                continue
            trimmed = tag.strip()
            if trimmed not in self._tags:
                self._tags.append(trimmed)


__all__ = ["MetadataBuilder"]
