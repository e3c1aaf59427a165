"""Rule provider metadata: declared defaults, builder, and frozen records."""

from ruleorder.metadata.builder import MetadataBuilder
from ruleorder.metadata.declarations import (
    DeclarationReader,
    DeclaredConstraints,
    MappingDeclarationReader,
    describe_origin,
    simple_name,
)
from ruleorder.metadata.record import ReferenceKind, RuleProviderMetadata

__all__ = [
    "DeclarationReader",
    "DeclaredConstraints",
    "MappingDeclarationReader",
    "MetadataBuilder",
    "ReferenceKind",
    "RuleProviderMetadata",
    "describe_origin",
    "simple_name",
]
