"""MetadataBuilder defaults, overrides, and validation."""

from __future__ import annotations

import pytest

from ruleorder.errors import InvalidMetadataError, UnknownPhaseError
from ruleorder.metadata import (
    DeclaredConstraints,
    MappingDeclarationReader,
    MetadataBuilder,
    RuleProviderMetadata,
)
from tests._helpers.expect import expect_equal, expect_in, expect_true
from tests._helpers.providers import (
    PHASE1,
    PHASE2,
    PHASE3,
    THREE_PHASES,
    DiscoverArchives,
    ExtractArchives,
    ScanJavaTypes,
)


def _builder(provider_id: str = "scan-java") -> MetadataBuilder:
    return MetadataBuilder.create(provider_id, ScanJavaTypes, catalog=THREE_PHASES)


@pytest.mark.parametrize("provider_id", ["", "   ", None])
def test_create_rejects_missing_id(provider_id: str | None) -> None:
    """A blank or missing id is invalid metadata."""
    with pytest.raises(InvalidMetadataError, match="ID"):
        MetadataBuilder.create(provider_id, ScanJavaTypes)  # type: ignore[arg-type]


def test_create_rejects_missing_implementation() -> None:
    """A missing implementation reference is invalid metadata."""
    with pytest.raises(InvalidMetadataError, match="implementation") as excinfo:
        MetadataBuilder.create("scan-java", None)  # type: ignore[arg-type]
    expect_equal(excinfo.value.problem_detail.code, "metadata.invalid", label="problem code")


def test_getters_fall_back_to_defaults() -> None:
    """Unset values resolve to catalog default phase, derived origin, and empty sets."""
    builder = _builder()

    expect_equal(builder.phase, PHASE2, label="default phase")
    expect_in("ScanJavaTypes loaded from", builder.origin, label="derived origin")
    expect_equal(builder.execute_after, (), label="execute_after")
    expect_equal(builder.execute_before_ids, (), label="execute_before_ids")
    expect_equal(builder.tags, frozenset(), label="tags")


def test_build_resolves_default_phase_and_origin() -> None:
    """build() freezes defaults into the record."""
    metadata = _builder().build()

    expect_true(isinstance(metadata, RuleProviderMetadata), message="record type")
    expect_equal(metadata.phase, PHASE2, label="phase")
    expect_equal(metadata.implementation_ref, ScanJavaTypes, label="implementation")
    expect_in("ScanJavaTypes", metadata.origin, label="origin")


def test_set_replaces_and_add_appends_with_dedup() -> None:
    """set_* replaces a collection; add_* appends without duplicates."""
    metadata = (
        _builder()
        .set_execute_after([DiscoverArchives, DiscoverArchives])
        .add_execute_after(ExtractArchives)
        .add_execute_after(DiscoverArchives)
        .add_execute_after(None)
        .set_execute_after_ids(["old"])
        .set_execute_after_ids(["decompile", "decompile"])
        .add_execute_after_id("unzip")
        .add_execute_after_id(None)
        .set_execute_before_ids(["report"])
        .add_execute_before_id("report")
        .build()
    )

    expect_equal(
        metadata.execute_after,
        (DiscoverArchives, ExtractArchives),
        label="execute_after",
    )
    expect_equal(metadata.execute_after_ids, ("decompile", "unzip"), label="execute_after_ids")
    expect_equal(metadata.execute_before_ids, ("report",), label="execute_before_ids")
    expect_equal(metadata.execute_before, (), label="execute_before")


def test_add_tags_trims_and_drops_blank() -> None:
    """Blank tags vanish, surviving tags are trimmed."""
    metadata = _builder().add_tags(" java ", "", "   ", None, "ejb", "java").build()

    expect_equal(metadata.tags, frozenset({"java", "ejb"}), label="tags")
    expect_true(metadata.has_tag(" ejb "), message="has_tag trims its argument")


def test_set_tags_replaces_existing_tags() -> None:
    """set_tags drops tags added earlier; None clears them."""
    builder = _builder().add_tags("java").set_tags(["jms", " "])

    expect_equal(builder.tags, frozenset({"jms"}), label="replaced tags")
    expect_equal(builder.set_tags(None).tags, frozenset(), label="cleared tags")


def test_set_rejects_none_entries() -> None:
    """set_* collections must not contain None."""
    with pytest.raises(InvalidMetadataError, match="None"):
        _builder().set_execute_before([DiscoverArchives, None])  # type: ignore[list-item]


def test_set_ids_rejects_blank_and_bare_strings() -> None:
    """Id collections must hold non-blank strings and must not be a bare string."""
    with pytest.raises(InvalidMetadataError, match="non-blank"):
        _builder().set_execute_after_ids(["ok", " "])
    with pytest.raises(InvalidMetadataError, match="collection"):
        _builder().set_execute_before_ids("report")


def test_set_refs_and_tags_reject_bare_strings() -> None:
    """A single string is not split into per-character references or tags."""
    with pytest.raises(InvalidMetadataError, match="execute_after must be a collection"):
        MetadataBuilder.create("B", "impl:B").set_execute_after("impl:A")  # type: ignore[arg-type]
    with pytest.raises(InvalidMetadataError, match="execute_before must be a collection"):
        _builder().set_execute_before(b"impl:A")  # type: ignore[arg-type]
    with pytest.raises(InvalidMetadataError, match="add_tags"):
        _builder().set_tags("ejb")


def test_build_rejects_self_reference() -> None:
    """A provider may not order itself against its own id or implementation."""
    with pytest.raises(InvalidMetadataError, match="own id"):
        _builder().add_execute_after_id("scan-java").build()
    with pytest.raises(InvalidMetadataError, match="own implementation"):
        _builder().add_execute_before(ScanJavaTypes).build()


def test_build_rejects_unknown_phase() -> None:
    """A phase outside the catalog fails the build."""
    with pytest.raises(UnknownPhaseError):
        _builder().set_phase("reporting").build()


def test_set_phase_none_restores_default() -> None:
    """Clearing the phase falls back to the catalog default."""
    builder = _builder().set_phase(PHASE3).set_phase(None)

    expect_equal(builder.build().phase, PHASE2, label="phase")


def test_seed_from_defaults_initializes_fields() -> None:
    """Declared defaults populate every non-empty field."""
    declared = DeclaredConstraints.of(
        after=[DiscoverArchives],
        after_ids=["unzip"],
        before_ids=["report"],
        phase=PHASE1,
        tags=[" java ", ""],
    )
    metadata = _builder().seed_from_defaults(declared).add_execute_after(ExtractArchives).build()

    expect_equal(metadata.phase, PHASE1, label="phase")
    expect_equal(
        metadata.execute_after,
        (DiscoverArchives, ExtractArchives),
        label="execute_after",
    )
    expect_equal(metadata.execute_after_ids, ("unzip",), label="execute_after_ids")
    expect_equal(metadata.execute_before_ids, ("report",), label="execute_before_ids")
    expect_equal(metadata.tags, frozenset({"java"}), label="tags")


def test_seed_from_defaults_only_once_and_before_overrides() -> None:
    """Seeding twice, or after an override, is rejected."""
    declared = DeclaredConstraints.of(phase=PHASE1)
    with pytest.raises(InvalidMetadataError, match="once"):
        _builder().seed_from_defaults(declared).seed_from_defaults(declared)
    with pytest.raises(InvalidMetadataError, match="before explicit overrides"):
        _builder().set_origin("rules.xml").seed_from_defaults(declared)


def test_for_provider_uses_simple_name_without_declaration() -> None:
    """Without a declaration the id is the implementation's simple name."""
    metadata = MetadataBuilder.for_provider(ExtractArchives, catalog=THREE_PHASES).build()

    expect_equal(metadata.id, "ExtractArchives", label="derived id")
    expect_equal(metadata.phase, PHASE2, label="default phase")


def test_for_provider_seeds_from_reader() -> None:
    """The declaration reader supplies the id and the ordering defaults."""
    reader = MappingDeclarationReader(
        {
            ExtractArchives: DeclaredConstraints.of(
                provider_id="extract-archives",
                after=[DiscoverArchives],
                phase=PHASE1,
            ),
        }
    )

    metadata = MetadataBuilder.for_provider(
        ExtractArchives, reader=reader, catalog=THREE_PHASES
    ).build()
    renamed = MetadataBuilder.for_provider(
        ExtractArchives, "extract-v2", reader=reader, catalog=THREE_PHASES
    ).build()

    expect_equal(metadata.id, "extract-archives", label="declared id")
    expect_equal(metadata.execute_after, (DiscoverArchives,), label="declared after")
    expect_equal(metadata.phase, PHASE1, label="declared phase")
    expect_equal(renamed.id, "extract-v2", label="explicit id wins")


def test_record_is_immutable_and_serializable() -> None:
    """Records cannot be mutated and render to JSON-friendly dicts."""
    metadata = _builder().add_execute_after(DiscoverArchives).add_tags("java").build()

    with pytest.raises(AttributeError):
        metadata.phase = PHASE1  # type: ignore[misc]
    payload = metadata.to_dict()
    expect_equal(payload["id"], "scan-java", label="id")
    expect_equal(payload["tags"], ["java"], label="tags")
    expect_true(
        payload["execute_after"][0].endswith("DiscoverArchives"),
        message="implementation refs rendered by qualified name",
    )
    expect_equal(
        list(metadata.references()),
        [("after", "ref", DiscoverArchives)],
        label="references",
    )
