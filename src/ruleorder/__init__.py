"""Deterministic execution ordering for migration-analysis rule providers.

Typical use::

    from ruleorder import MetadataBuilder, PhaseCatalog, schedule

    catalog = PhaseCatalog.standard()
    records = [
        MetadataBuilder.for_provider(ScanJars, catalog=catalog).build(),
        MetadataBuilder.for_provider(ClassifyJars, catalog=catalog)
        .add_execute_after(ScanJars)
        .build(),
    ]
    result = schedule(records, catalog)
"""

from ruleorder.config import PhaseCatalogConfig, SchedulerConfig, default_catalog
from ruleorder.errors import (
    CrossPhaseConflictError,
    CyclicDependencyError,
    InvalidMetadataError,
    OrderingError,
    ProblemDetail,
    UnknownPhaseError,
    UnresolvedReferenceError,
    UnresolvedReferenceWarning,
)
from ruleorder.graph import DependencyGraph
from ruleorder.metadata import (
    DeclarationReader,
    DeclaredConstraints,
    MappingDeclarationReader,
    MetadataBuilder,
    RuleProviderMetadata,
)
from ruleorder.phases import DEFAULT_PHASE, DEFAULT_PHASES, PhaseCatalog
from ruleorder.scheduler import ScheduleResult, order_providers, schedule

__all__ = [
    "DEFAULT_PHASE",
    "DEFAULT_PHASES",
    "CrossPhaseConflictError",
    "CyclicDependencyError",
    "DeclarationReader",
    "DeclaredConstraints",
    "DependencyGraph",
    "InvalidMetadataError",
    "MappingDeclarationReader",
    "MetadataBuilder",
    "OrderingError",
    "PhaseCatalog",
    "PhaseCatalogConfig",
    "ProblemDetail",
    "RuleProviderMetadata",
    "ScheduleResult",
    "SchedulerConfig",
    "UnknownPhaseError",
    "UnresolvedReferenceError",
    "UnresolvedReferenceWarning",
    "default_catalog",
    "order_providers",
    "schedule",
]
