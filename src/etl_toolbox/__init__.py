"""
etl-toolbox: declarative record mapping between spreadsheets, DataFrames and
database tables, with a retrying circuit breaker around every I/O step.
"""

from etl_toolbox.config import Settings, get_settings
from etl_toolbox.exceptions import (
    CoercionError,
    ConfigurationError,
    EtlToolboxError,
    MappingOperationError,
    NonNullableNullError,
    RowMappingError,
    SchemaAccessError,
    SourceNotFoundError,
    TransientFailure,
    ValidationError,
)
from etl_toolbox.io import (
    DataFrameSource,
    ExcelSheetSource,
    SqlTableSink,
    SqlTableSource,
    TabularSink,
    TabularSource,
    create_engine_from_settings,
)
from etl_toolbox.mapping import (
    BindingMetadata,
    ColumnBinding,
    FieldSpec,
    MappingResult,
    RecordType,
    ValueType,
)
from etl_toolbox.mapping.sheet_mapper import SheetMapper
from etl_toolbox.mapping.table_mapper import TableMapper
from etl_toolbox.reliability import (
    BreakerState,
    CircuitBreaker,
    DebugCircuitBreaker,
    create_breaker,
)

__version__ = "0.1.0"

__all__ = [
    "BindingMetadata",
    "BreakerState",
    "CircuitBreaker",
    "CoercionError",
    "ColumnBinding",
    "ConfigurationError",
    "DataFrameSource",
    "DebugCircuitBreaker",
    "EtlToolboxError",
    "ExcelSheetSource",
    "FieldSpec",
    "MappingOperationError",
    "MappingResult",
    "NonNullableNullError",
    "RecordType",
    "RowMappingError",
    "SchemaAccessError",
    "Settings",
    "SheetMapper",
    "SourceNotFoundError",
    "SqlTableSink",
    "SqlTableSource",
    "TableMapper",
    "TabularSink",
    "TabularSource",
    "TransientFailure",
    "ValidationError",
    "ValueType",
    "create_breaker",
    "create_engine_from_settings",
    "get_settings",
]
