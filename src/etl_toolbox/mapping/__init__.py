"""
Tabular mapping engine: bindings, reconciliation, coercion and the row loop.

The sheet and table facades live in ``etl_toolbox.mapping.sheet_mapper`` and
``etl_toolbox.mapping.table_mapper``; they depend on ``etl_toolbox.io`` and
are re-exported from the top-level package.
"""

from .bindings import (
    BindingMetadata,
    ColumnBinding,
    FieldBinding,
    FieldSpec,
    RecordType,
    describe,
    resolve_bindings,
)
from .coercion import DeclaredType, ValueType, cast_value, coerce, is_null, parse_value
from .columns import ColumnDescriptor, column_label_to_index
from .models import MappingDiagnostics, MappingResult, PreparedRows
from .reconciler import MatchedBinding, SchemaMapping, reconcile
from .row_mapper import map_records, map_rows
from .schema import SchemaColumn, TabularRow

__all__ = [
    "BindingMetadata",
    "ColumnBinding",
    "ColumnDescriptor",
    "DeclaredType",
    "FieldBinding",
    "FieldSpec",
    "MappingDiagnostics",
    "MappingResult",
    "MatchedBinding",
    "PreparedRows",
    "RecordType",
    "SchemaColumn",
    "SchemaMapping",
    "TabularRow",
    "ValueType",
    "cast_value",
    "coerce",
    "column_label_to_index",
    "describe",
    "is_null",
    "map_records",
    "map_rows",
    "parse_value",
    "reconcile",
    "resolve_bindings",
]
