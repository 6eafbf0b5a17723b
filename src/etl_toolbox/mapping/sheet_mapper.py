"""
Sheet-to-record mapping facade.

    >>> mapper = SheetMapper("sales.xlsx")                    # doctest: +SKIP
    >>> result = mapper.parse(SALE, sheet="2024")             # doctest: +SKIP
    >>> result.record_count, result.warnings                  # doctest: +SKIP
    (118, ("Row '7': unable to cast value 'n/a' ...",))
"""

from pathlib import Path
from typing import Any, Callable, List, Optional, Union

import pandas as pd

from etl_toolbox.config import Settings, get_settings
from etl_toolbox.exceptions import MappingOperationError, SchemaAccessError
from etl_toolbox.io.readers.excel_reader import DataFrameSource, ExcelSheetSource
from etl_toolbox.io.sources import TabularSource
from etl_toolbox.mapping.bindings import BindingMetadata, RecordType, resolve_bindings
from etl_toolbox.mapping.models import MappingResult
from etl_toolbox.mapping.reconciler import reconcile
from etl_toolbox.mapping.row_mapper import map_rows
from etl_toolbox.mapping.schema import SchemaColumn, TabularRow
from etl_toolbox.reliability.breaker import create_breaker
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)

SheetInput = Union[str, Path, pd.DataFrame, TabularSource]


def read_schema(
    breaker: Any, get_schema: Callable[[], List[SchemaColumn]], label: str
) -> List[SchemaColumn]:
    """Call ``get_schema`` through ``breaker``.

    Raises:
        SchemaAccessError: The schema could not be read, including after the
            breaker gave up
    """
    try:
        return list(breaker.execute(get_schema))
    except SchemaAccessError:
        raise
    except Exception as e:
        raise SchemaAccessError(f"Cannot read the schema of '{label}': {e}") from e


class SheetMapper:
    """Maps the rows of a workbook sheet (or any tabular source) to records."""

    def __init__(
        self,
        source: SheetInput,
        breaker: Any = None,
        settings: Optional[Settings] = None,
        skip_bad_rows: Optional[bool] = None,
        exclusive: bool = False,
    ):
        """
        Args:
            source: Workbook path, DataFrame or TabularSource
            breaker: Breaker guarding reads (default built from settings)
            settings: Settings to use instead of the cached ones
            skip_bad_rows: Row failure policy (default from settings)
            exclusive: Hand each column to at most one field
        """
        self.settings = settings or get_settings()
        self.source = source
        self.breaker = breaker or create_breaker(self.settings)
        self.skip_bad_rows = (
            self.settings.skip_bad_rows if skip_bad_rows is None else skip_bad_rows
        )
        self.exclusive = exclusive

    def _source_for(self, sheet: Union[str, int, None]) -> TabularSource:
        if isinstance(self.source, (str, Path)):
            return ExcelSheetSource(
                self.source,
                sheet if sheet is not None else self.settings.default_sheet_name,
            )
        if isinstance(self.source, pd.DataFrame):
            return DataFrameSource(self.source)
        return self.source

    def parse(
        self,
        record_type: RecordType,
        sheet: Union[str, int, None] = None,
        metadata: Optional[BindingMetadata] = None,
    ) -> MappingResult:
        """Build one ``record_type`` record per source row.

        Raises:
            MappingOperationError: Binding resolution or schema access failed,
                or a row failed while ``skip_bad_rows`` is False
        """
        source = self._source_for(sheet)
        label = str(getattr(source, "name", type(source).__name__))
        try:
            bindings = resolve_bindings(record_type, metadata)
            schema = read_schema(self.breaker, source.get_schema, label)
            rows: List[TabularRow] = self.breaker.execute(
                lambda: list(source.get_rows())
            )
            mapping = reconcile(bindings, schema, exclusive=self.exclusive)
            return map_rows(rows, mapping, record_type, self.skip_bad_rows)
        except Exception as e:
            logger.error(
                "mapping.failed",
                record_type=record_type.name,
                source=label,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise MappingOperationError(
                f"Mapping '{label}' to '{record_type.name}' failed: {e}"
            ) from e

    def read_frame(self, sheet: Union[str, int, None] = None) -> pd.DataFrame:
        """The raw sheet as a DataFrame, read through the breaker."""
        source = self._source_for(sheet)
        if not hasattr(source, "read_frame"):
            raise MappingOperationError(
                f"Source '{type(source).__name__}' cannot be read as a DataFrame"
            )
        try:
            return self.breaker.execute(source.read_frame)
        except Exception as e:
            raise MappingOperationError(f"Reading '{sheet}' failed: {e}") from e
