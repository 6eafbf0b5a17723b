"""Tabular sources and sinks."""

from etl_toolbox.io.loader.sql_sink import SqlTableSink
from etl_toolbox.io.readers.excel_reader import DataFrameSource, ExcelSheetSource
from etl_toolbox.io.readers.sql_reader import SqlTableSource, create_engine_from_settings
from etl_toolbox.io.sources import TabularSink, TabularSource

__all__ = [
    "DataFrameSource",
    "ExcelSheetSource",
    "SqlTableSink",
    "SqlTableSource",
    "TabularSink",
    "TabularSource",
    "create_engine_from_settings",
]
