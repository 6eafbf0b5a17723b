from etl_toolbox.io.readers.excel_reader import DataFrameSource, ExcelSheetSource
from etl_toolbox.io.readers.sql_reader import SqlTableSource

__all__ = ["DataFrameSource", "ExcelSheetSource", "SqlTableSource"]
