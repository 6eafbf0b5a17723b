"""
Relational bulk sink.

Rows arrive positional, paired with the destination column ordinals; the sink
turns them into parameter dictionaries and inserts them with a single
executemany inside one transaction. Either every row lands or none does.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from etl_toolbox.config import Settings, get_settings
from etl_toolbox.io.readers.sql_reader import (
    create_engine_from_settings,
    reflect_columns,
    reflect_table,
)
from etl_toolbox.mapping.schema import SchemaColumn
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)


class SqlTableSink:
    """Bulk writer for database tables reachable through one engine."""

    def __init__(
        self,
        engine: Engine,
        schema: Optional[str] = None,
        bulk_timeout: Optional[int] = None,
    ):
        """
        Args:
            engine: SQLAlchemy engine of the target database
            schema: Database schema holding the target tables
            bulk_timeout: Statement timeout of one bulk write, in seconds
                (default from settings)
        """
        self.engine = engine
        self.schema = schema
        self.bulk_timeout = (
            bulk_timeout
            if bulk_timeout is not None
            else get_settings().bulk_timeout_seconds
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SqlTableSink":
        """Sink on the configured database, schema and bulk timeout."""
        settings = settings or get_settings()
        return cls(
            create_engine_from_settings(settings),
            schema=settings.database_schema,
            bulk_timeout=settings.bulk_timeout_seconds,
        )

    def get_schema(self, table_name: str) -> List[SchemaColumn]:
        return reflect_columns(self.engine, table_name, self.schema)

    def bulk_write(
        self,
        table_name: str,
        rows: Sequence[Sequence[Any]],
        column_mapping: Sequence[Tuple[int, int]],
    ) -> int:
        """Insert ``rows`` into ``table_name``.

        Args:
            table_name: Destination table
            rows: Positional value lists
            column_mapping: (value position, destination column ordinal) pairs

        Returns:
            Number of rows written
        """
        if not rows:
            return 0

        table = reflect_table(self.engine, table_name, self.schema)
        table_columns = list(table.columns)
        targets = [
            (position, table_columns[ordinal].name)
            for position, ordinal in column_mapping
        ]
        params: List[Dict[str, Any]] = [
            {name: row[position] for position, name in targets} for row in rows
        ]

        try:
            with self.engine.begin() as conn:
                if conn.dialect.name == "postgresql":
                    conn.execute(
                        text(
                            "SET LOCAL statement_timeout = "
                            f"{int(self.bulk_timeout) * 1000}"
                        )
                    )
                conn.execute(table.insert(), params)
        except SQLAlchemyError as e:
            logger.error(
                "sql.bulk_write_failed",
                table=table_name,
                row_count=len(params),
                error=str(e),
            )
            raise

        logger.info(
            "sql.bulk_write_completed",
            table=table_name,
            row_count=len(params),
            column_count=len(targets),
        )
        return len(params)
