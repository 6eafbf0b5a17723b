"""
Per-row mapping loop shared by the sheet and table mappers.

Both directions follow the same policy:

- ``skip_bad_rows=True``: a failing row is dropped, its error message becomes
  a warning and the loop continues.
- ``skip_bad_rows=False``: the first failing row aborts the whole operation.

Row numbers in messages are 1-based and count every source row, including
skipped ones.
"""

from typing import Any, Iterable, List, Sequence

from etl_toolbox.exceptions import CoercionError, InvalidOperationError, RowMappingError
from etl_toolbox.mapping.bindings import RecordType
from etl_toolbox.mapping.coercion import DeclaredType, coerce
from etl_toolbox.mapping.models import (
    MappingDiagnostics,
    MappingResult,
    PreparedRows,
    dedupe_warnings,
)
from etl_toolbox.mapping.reconciler import MatchedBinding, SchemaMapping
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)


def _read_cell(row: Any, match: MatchedBinding) -> Any:
    # Ordinal first: cleaned headers and joined rows can repeat a name
    column = match.column
    if column.index is not None:
        return row[column.index]
    if column.name:
        return row[column.name]
    raise InvalidOperationError(
        "Neither index nor name of the column specified for field "
        f"'{match.binding.field.name}'"
    )


def _convert(
    value: Any, target: DeclaredType, name: str, row_number: int
) -> Any:
    try:
        return coerce(value, target, name)
    except CoercionError as exc:
        raise RowMappingError(
            row_number,
            raw_value=value,
            target_type=str(target),
            name=name,
            reason=str(exc),
        ) from exc


def _handle_row_error(
    exc: Exception, row_number: int, skip_bad_rows: bool, warnings: List[str]
) -> None:
    if not skip_bad_rows:
        raise exc
    warnings.append(str(exc))
    logger.warning(
        "mapping.row_skipped",
        row_number=row_number,
        error_type=type(exc).__name__,
        error=str(exc),
    )


def map_rows(
    rows: Iterable[Any],
    mapping: SchemaMapping,
    record_type: RecordType,
    skip_bad_rows: bool = True,
) -> MappingResult:
    """Build one record per source row.

    Args:
        rows: Source rows, indexable by column name and ordinal
        mapping: Reconciled bindings for the source schema
        record_type: Shape of the records to build
        skip_bad_rows: Drop failing rows with a warning instead of aborting

    Returns:
        MappingResult holding the built records

    Raises:
        RowMappingError: A value failed coercion and skip_bad_rows is False
    """
    records: List[Any] = []
    warnings: List[str] = []

    for row_number, row in enumerate(rows, start=1):
        try:
            record = record_type.factory()
            for match in mapping.matched:
                spec = match.binding.field
                value = _read_cell(row, match)
                converted = _convert(
                    value, spec.declared_type, match.display_name, row_number
                )
                spec.setter(record, converted)
            records.append(record)
        except Exception as exc:
            _handle_row_error(exc, row_number, skip_bad_rows, warnings)

    result = MappingResult(
        record_count=len(records),
        warnings=dedupe_warnings(warnings),
        records=tuple(records),
        diagnostics=MappingDiagnostics.from_mapping(mapping),
    )
    logger.info(
        "mapping.completed",
        direction="read",
        record_type=record_type.name,
        record_count=result.record_count,
        warning_count=len(result.warnings),
    )
    return result


def map_records(
    records: Iterable[Any],
    mapping: SchemaMapping,
    skip_bad_rows: bool = True,
) -> PreparedRows:
    """Convert records into positional rows for a sink.

    Generated (identity and auto-increment) columns are left out of both the
    rows and the column mapping so the database fills them. A null headed for
    a NOT NULL column fails the record here rather than the whole bulk write.

    Returns:
        PreparedRows with one value list per successfully mapped record
    """
    targets: Sequence[MatchedBinding] = [
        m for m in mapping.matched if not m.column.is_generated
    ]
    prepared = PreparedRows(
        column_mapping=[(i, m.column.index) for i, m in enumerate(targets)],
        column_names=[m.display_name for m in targets],
    )
    warnings: List[str] = []

    for row_number, record in enumerate(records, start=1):
        try:
            values = []
            for match in targets:
                value = match.binding.field.getter(record)
                converted = _convert(
                    value, match.column.declared_type, match.display_name, row_number
                )
                if converted is None and not match.column.nullable:
                    raise RowMappingError(
                        row_number,
                        raw_value=value,
                        target_type=str(match.column.declared_type),
                        name=match.display_name,
                        reason=(
                            f"The column '{match.display_name}' does not support "
                            "NULL values"
                        ),
                    )
                values.append(converted)
            prepared.rows.append(values)
        except Exception as exc:
            _handle_row_error(exc, row_number, skip_bad_rows, warnings)

    prepared.result = MappingResult(
        record_count=len(prepared.rows),
        warnings=dedupe_warnings(warnings),
        diagnostics=MappingDiagnostics.from_mapping(mapping),
    )
    logger.info(
        "mapping.completed",
        direction="write",
        record_count=prepared.result.record_count,
        warning_count=len(prepared.result.warnings),
    )
    return prepared
