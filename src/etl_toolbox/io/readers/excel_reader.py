"""
Spreadsheet and DataFrame sources.

Workbooks are read with pandas on top of openpyxl. Header cells are cleaned
(surrounding whitespace, embedded newlines/tabs) and pandas' generated
``Unnamed: n`` headers become empty names, so those columns can only be bound
by ordinal or spreadsheet label.
"""

import re
import zipfile
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

import pandas as pd

from etl_toolbox.config import get_settings
from etl_toolbox.exceptions import SchemaAccessError, SourceNotFoundError
from etl_toolbox.mapping.coercion import ValueType, normalize_cell
from etl_toolbox.mapping.schema import SchemaColumn, TabularRow
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)

_UNNAMED_HEADER = re.compile(r"^Unnamed:\s*\d+")

_SHEET_ERROR_SIGNALS = (
    "Worksheet",
    "does not exist",
    "is not a valid worksheet name",
    "worksheets less than",
    "out of range",
)


def clean_header(value: Any) -> str:
    """Normalize one header cell; generated pandas headers become empty."""
    if value is None:
        return ""
    text = str(value).strip().replace("\n", "").replace("\t", "")
    if _UNNAMED_HEADER.match(text):
        return ""
    return text


def dtype_to_value_type(dtype: Any) -> ValueType:
    types = pd.api.types
    if types.is_bool_dtype(dtype):
        return ValueType.BOOLEAN
    if types.is_integer_dtype(dtype):
        return ValueType.INTEGER
    if types.is_float_dtype(dtype):
        return ValueType.FLOAT
    if types.is_datetime64_any_dtype(dtype):
        return ValueType.DATETIME
    if types.is_string_dtype(dtype) and not types.is_object_dtype(dtype):
        return ValueType.STRING
    return ValueType.OBJECT


class DataFrameSource:
    """Tabular source over an in-memory DataFrame."""

    def __init__(self, frame: pd.DataFrame, name: Optional[str] = None):
        self.frame = frame
        self.name = name or get_settings().default_table_name
        self.column_names = [clean_header(column) for column in frame.columns]

    def get_schema(self) -> List[SchemaColumn]:
        return [
            SchemaColumn(
                name=name,
                index=position,
                value_type=dtype_to_value_type(dtype),
                nullable=True,
            )
            for position, (name, dtype) in enumerate(
                zip(self.column_names, self.frame.dtypes)
            )
        ]

    def get_rows(self) -> Iterator[TabularRow]:
        for values in self.frame.itertuples(index=False, name=None):
            yield TabularRow([normalize_cell(v) for v in values], self.column_names)

    def read_frame(self) -> pd.DataFrame:
        return self.frame.copy()


class ExcelSheetSource:
    """
    One worksheet of an Excel workbook as a tabular source.

    The sheet is read once, on first access, and kept for the lifetime of the
    source. Missing workbooks and sheets raise ``SourceNotFoundError``, which
    the circuit breaker does not retry.
    """

    def __init__(
        self,
        path: Union[str, Path],
        sheet: Union[str, int, None] = None,
        max_rows: Optional[int] = None,
    ):
        """
        Args:
            path: Path to the workbook
            sheet: Sheet name or 0-based position (default from settings)
            max_rows: Maximum number of data rows to read (None = no limit)
        """
        self.path = Path(path)
        self.sheet = sheet if sheet is not None else get_settings().default_sheet_name
        self.name = f"{self.path.name}:{self.sheet}"
        self.max_rows = max_rows
        self._frame: Optional[pd.DataFrame] = None
        self._source: Optional[DataFrameSource] = None

    def _load(self) -> DataFrameSource:
        if self._source is None:
            self._frame = self._read()
            self._source = DataFrameSource(self._frame, name=self.name)
        return self._source

    def _read(self) -> pd.DataFrame:
        if not self.path.exists():
            raise SourceNotFoundError(f"Excel file not found: {self.path}")
        if self.path.stat().st_size == 0:
            raise SchemaAccessError(f"Excel file is empty: {self.path}")

        read_kwargs: dict = {
            "sheet_name": self.sheet,
            "engine": "openpyxl",
            "header": 0,
        }
        if self.max_rows is not None:
            read_kwargs["nrows"] = self.max_rows

        logger.info("excel.read_started", path=str(self.path), sheet=self.sheet)
        try:
            frame = pd.read_excel(self.path, **read_kwargs)
        except zipfile.BadZipFile as e:
            raise SchemaAccessError(
                f"Failed to parse Excel file {self.path}: corrupted or invalid format"
            ) from e
        except (ValueError, IndexError, KeyError) as e:
            msg = str(e)
            if isinstance(e, (IndexError, KeyError)) or any(
                s in msg for s in _SHEET_ERROR_SIGNALS
            ):
                raise SourceNotFoundError(
                    f"Sheet '{self.sheet}' not found in {self.path}"
                ) from e
            raise SchemaAccessError(
                f"Invalid Excel file or parameters for {self.path}: {e}"
            ) from e
        except Exception as e:
            raise SchemaAccessError(
                f"Unexpected error reading Excel file {self.path}: {e}"
            ) from e

        logger.info(
            "excel.read_completed",
            path=str(self.path),
            sheet=self.sheet,
            row_count=len(frame),
        )
        return frame

    def get_schema(self) -> List[SchemaColumn]:
        return self._load().get_schema()

    def get_rows(self) -> Iterator[TabularRow]:
        return self._load().get_rows()

    def read_frame(self) -> pd.DataFrame:
        """The sheet as a DataFrame with cleaned headers."""
        source = self._load()
        frame = source.read_frame()
        frame.columns = source.column_names
        return frame
