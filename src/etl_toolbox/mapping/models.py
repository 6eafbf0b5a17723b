from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple

from etl_toolbox.mapping.reconciler import SchemaMapping


def dedupe_warnings(warnings: Iterable[str]) -> Tuple[str, ...]:
    """Collapse repeated messages, keeping first-seen order."""
    return tuple(dict.fromkeys(warnings))


@dataclass(frozen=True)
class MappingDiagnostics:
    """Column lists of a reconciled mapping, rendered for display."""

    source_columns: Tuple[str, ...]
    mapped_columns: Tuple[str, ...]
    unmapped_source_columns: Tuple[str, ...]
    unmapped_target_fields: Tuple[str, ...]

    @classmethod
    def from_mapping(cls, mapping: SchemaMapping) -> "MappingDiagnostics":
        return cls(
            source_columns=tuple(c.descriptor.display_name for c in mapping.schema),
            mapped_columns=tuple(m.display_name for m in mapping.matched),
            unmapped_source_columns=tuple(
                c.descriptor.display_name for c in mapping.unmatched_columns
            ),
            unmapped_target_fields=tuple(str(b) for b in mapping.unmatched_fields),
        )


@dataclass(frozen=True)
class MappingResult:
    """Structured response of a mapping operation.

    Attributes:
        record_count: Rows mapped successfully
        warnings: De-duplicated messages of skipped rows
        records: Mapped records (source -> record direction only)
        diagnostics: Column lists of the reconciled mapping, when available
    """

    record_count: int
    warnings: Tuple[str, ...] = ()
    records: Tuple[Any, ...] = ()
    diagnostics: Optional[MappingDiagnostics] = None


@dataclass
class PreparedRows:
    """Records converted to positional rows ready for a bulk write.

    ``column_mapping`` pairs each value position with the destination
    column ordinal.
    """

    rows: List[List[Any]] = field(default_factory=list)
    column_mapping: List[Tuple[int, int]] = field(default_factory=list)
    column_names: List[str] = field(default_factory=list)
    result: MappingResult = field(default_factory=lambda: MappingResult(0))
