"""Fake rule provider implementations and metadata factories for tests."""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass

from ruleorder.metadata import MetadataBuilder, RuleProviderMetadata
from ruleorder.phases import PhaseCatalog

PHASE1 = "phase1"
PHASE2 = "phase2"
PHASE3 = "phase3"

TWO_PHASES = PhaseCatalog.of([PHASE1, PHASE2])
THREE_PHASES = PhaseCatalog.of([PHASE1, PHASE2, PHASE3], default=PHASE2)


class DiscoverArchives:
    """Stand-in provider implementation."""


class ExtractArchives:
    """Stand-in provider implementation."""


class ScanJavaTypes:
    """Stand-in provider implementation."""


class GroovyRules:
    """One implementation hosting several rules with their own ids."""


def record(  # noqa: PLR0913
    provider_id: str,
    phase: str = PHASE1,
    *,
    implementation_ref: Hashable | None = None,
    after: Sequence[Hashable] = (),
    after_ids: Sequence[str] = (),
    before: Sequence[Hashable] = (),
    before_ids: Sequence[str] = (),
    catalog: PhaseCatalog = TWO_PHASES,
) -> RuleProviderMetadata:
    """
    Build frozen metadata through the public builder.

    Returns
    -------
    RuleProviderMetadata
        Record whose implementation ref defaults to ``"impl:<id>"``.
    """
    ref = implementation_ref if implementation_ref is not None else f"impl:{provider_id}"
    return (
        MetadataBuilder.create(provider_id, ref, catalog=catalog)
        .set_phase(phase)
        .set_execute_after(after)
        .set_execute_after_ids(after_ids)
        .set_execute_before(before)
        .set_execute_before_ids(before_ids)
        .build()
    )


@dataclass(frozen=True)
class FakeProvider:
    """Provider object exposing metadata, as an execution driver would see it."""

    metadata: RuleProviderMetadata
