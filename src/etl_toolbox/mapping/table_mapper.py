"""Record-to-table bulk insert facade."""

from typing import Any, Iterable, Optional

from etl_toolbox.config import Settings, get_settings
from etl_toolbox.exceptions import MappingOperationError
from etl_toolbox.io.sources import TabularSink
from etl_toolbox.mapping.bindings import BindingMetadata, RecordType, resolve_bindings
from etl_toolbox.mapping.models import MappingResult
from etl_toolbox.mapping.reconciler import reconcile
from etl_toolbox.mapping.row_mapper import map_records
from etl_toolbox.mapping.sheet_mapper import read_schema
from etl_toolbox.reliability.breaker import create_breaker
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)


class TableMapper:
    """Writes records into a sink table through the breaker."""

    def __init__(
        self,
        sink: TabularSink,
        breaker: Any = None,
        settings: Optional[Settings] = None,
        skip_bad_rows: Optional[bool] = None,
        exclusive: bool = False,
    ):
        self.settings = settings or get_settings()
        self.sink = sink
        self.breaker = breaker or create_breaker(self.settings)
        self.skip_bad_rows = (
            self.settings.skip_bad_rows if skip_bad_rows is None else skip_bad_rows
        )
        self.exclusive = exclusive

    def bulk_insert(
        self,
        table_name: str,
        items: Iterable[Any],
        record_type: RecordType,
        metadata: Optional[BindingMetadata] = None,
    ) -> MappingResult:
        """Map ``items`` onto ``table_name``'s columns and write them in bulk.

        Rows that fail coercion are skipped with a warning (or abort the
        operation when ``skip_bad_rows`` is False). The write itself is all or
        nothing.

        Raises:
            MappingOperationError: Chained to the first fatal error
        """
        try:
            bindings = resolve_bindings(record_type, metadata)
            schema = read_schema(
                self.breaker, lambda: self.sink.get_schema(table_name), table_name
            )
            mapping = reconcile(bindings, schema, exclusive=self.exclusive)
            prepared = map_records(items, mapping, self.skip_bad_rows)
            self.breaker.execute(
                lambda: self.sink.bulk_write(
                    table_name, prepared.rows, prepared.column_mapping
                )
            )
        except Exception as e:
            logger.error(
                "mapping.failed",
                record_type=record_type.name,
                table=table_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise MappingOperationError(
                f"Inserting '{record_type.name}' records into '{table_name}' "
                f"failed: {e}"
            ) from e
        return prepared.result

