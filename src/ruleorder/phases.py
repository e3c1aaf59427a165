"""Phase catalog: the fixed, totally ordered sequence of rule phases."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from ruleorder.errors import UnknownPhaseError

INITIALIZATION = "initialization"
DISCOVERY = "discovery"
ARCHIVE_EXTRACTION = "archive_extraction"
ARCHIVE_METADATA_EXTRACTION = "archive_metadata_extraction"
CLASSIFY_FILE_TYPES = "classify_file_types"
DECOMPILATION = "decompilation"
INITIAL_ANALYSIS = "initial_analysis"
MIGRATION_RULES = "migration_rules"
POST_MIGRATION_RULES = "post_migration_rules"
PRE_REPORT_GENERATION = "pre_report_generation"
REPORT_GENERATION = "report_generation"
REPORT_RENDERING = "report_rendering"
POST_REPORT_GENERATION = "post_report_generation"
POST_REPORT_RENDERING = "post_report_rendering"
POST_FINALIZE = "post_finalize"
FINALIZE = "finalize"

# Execution order of the standard migration analysis run.
DEFAULT_PHASES: tuple[str, ...] = (
    INITIALIZATION,
    DISCOVERY,
    ARCHIVE_EXTRACTION,
    ARCHIVE_METADATA_EXTRACTION,
    CLASSIFY_FILE_TYPES,
    DECOMPILATION,
    INITIAL_ANALYSIS,
    MIGRATION_RULES,
    POST_MIGRATION_RULES,
    PRE_REPORT_GENERATION,
    REPORT_GENERATION,
    REPORT_RENDERING,
    POST_REPORT_GENERATION,
    POST_REPORT_RENDERING,
    POST_FINALIZE,
    FINALIZE,
)
DEFAULT_PHASE = MIGRATION_RULES


@dataclass(frozen=True)
class PhaseCatalog:
    """
    Immutable, totally ordered list of phase identifiers.

    Parameters
    ----------
    phases
        Phase identifiers in execution order; must be unique and non-empty.
    default
        Phase assigned to providers that declare none. Defaults to the first phase.
    """

    phases: tuple[str, ...]
    default: str | None = None
    _index: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate the phase list and precompute the order index."""
        phases = tuple(self.phases)
        if not phases:
            message = "Phase catalog requires at least one phase"
            raise ValueError(message)
        index: dict[str, int] = {}
        for position, phase in enumerate(phases):
            if not isinstance(phase, str) or not phase.strip():
                message = f"Phase identifiers must be non-blank strings, got {phase!r}"
                raise ValueError(message)
            if phase in index:
                message = f"Duplicate phase in catalog: {phase!r}"
                raise ValueError(message)
            index[phase] = position
        default = phases[0] if self.default is None else self.default
        if default not in index:
            raise UnknownPhaseError(default, known=phases)
        object.__setattr__(self, "phases", phases)
        object.__setattr__(self, "default", default)
        object.__setattr__(self, "_index", index)

    @classmethod
    def of(cls, phases: Sequence[str], default: str | None = None) -> PhaseCatalog:
        """
        Construct a catalog from any phase sequence.

        Returns
        -------
        PhaseCatalog
            Catalog preserving the given order.
        """
        return cls(phases=tuple(phases), default=default)

    @classmethod
    def standard(cls) -> PhaseCatalog:
        """
        Return the standard migration analysis catalog.

        Returns
        -------
        PhaseCatalog
            Catalog over ``DEFAULT_PHASES`` defaulting to ``migration_rules``.
        """
        return cls(phases=DEFAULT_PHASES, default=DEFAULT_PHASE)

    def index_of(self, phase: str) -> int:
        """
        Return the execution position of a phase.

        Raises
        ------
        UnknownPhaseError
            If the phase is not part of this catalog.
        """
        try:
            return self._index[phase]
        except (KeyError, TypeError):
            raise UnknownPhaseError(phase, known=self.phases) from None

    def default_phase(self) -> str:
        """Phase used when a provider declares none."""
        return self.default if self.default is not None else self.phases[0]

    def require(self, phase: str) -> str:
        """
        Return ``phase`` unchanged after checking it belongs to the catalog.

        Raises
        ------
        UnknownPhaseError
            If the phase is not part of this catalog.
        """
        self.index_of(phase)
        return phase

    def __contains__(self, phase: object) -> bool:
        return isinstance(phase, str) and phase in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self.phases)

    def __len__(self) -> int:
        return len(self.phases)


__all__ = [
    "DEFAULT_PHASE",
    "DEFAULT_PHASES",
    "PhaseCatalog",
]
