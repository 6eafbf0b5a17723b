"""
Relational table source backed by SQLAlchemy reflection.

``reflect_columns`` is shared with the SQL sink: it turns the inspector's
column dictionaries into ``SchemaColumn`` values, flagging columns whose
value the database generates (identity, serial/autoincrement, SQLite rowid
aliases).
"""

from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import (
    MetaData,
    Table,
    create_engine,
    inspect,
    select,
    types as sqltypes,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from etl_toolbox.config import Settings, get_settings
from etl_toolbox.exceptions import (
    ConfigurationError,
    SchemaAccessError,
    SourceNotFoundError,
)
from etl_toolbox.mapping.coercion import ValueType, normalize_cell
from etl_toolbox.mapping.schema import SchemaColumn, TabularRow
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)


def create_engine_from_settings(settings: Optional[Settings] = None) -> Engine:
    """Build an engine for the configured ``ETL_DATABASE_URI``.

    Raises:
        ConfigurationError: No database URI is configured
    """
    settings = settings or get_settings()
    uri = settings.get_database_connection_string()
    if not uri:
        raise ConfigurationError("No database URI configured (ETL_DATABASE_URI)")
    return create_engine(uri)


def sql_type_to_value_type(sql_type: Any) -> ValueType:
    # Order matters: Float subclasses Numeric, DateTime is not a Date
    if isinstance(sql_type, sqltypes.Boolean):
        return ValueType.BOOLEAN
    if isinstance(sql_type, sqltypes.Integer):
        return ValueType.INTEGER
    if isinstance(sql_type, sqltypes.Float):
        return ValueType.FLOAT
    if isinstance(sql_type, sqltypes.Numeric):
        return ValueType.DECIMAL
    if isinstance(sql_type, sqltypes.DateTime):
        return ValueType.DATETIME
    if isinstance(sql_type, sqltypes.Date):
        return ValueType.DATE
    if isinstance(sql_type, sqltypes.String):
        return ValueType.STRING
    return ValueType.OBJECT


def _is_generated(
    column: Dict[str, Any], primary_key: List[str], dialect_name: str
) -> bool:
    if column.get("identity"):
        return True
    if column.get("autoincrement") is True:
        return True
    # SQLite: a lone INTEGER PRIMARY KEY aliases the rowid
    return (
        dialect_name == "sqlite"
        and primary_key == [column["name"]]
        and str(column["type"]).upper() == "INTEGER"
    )


def reflect_columns(
    engine: Engine, table_name: str, schema: Optional[str] = None
) -> List[SchemaColumn]:
    """Read the column list of ``table_name``.

    Raises:
        SourceNotFoundError: The table does not exist
        SchemaAccessError: The catalog could not be queried
    """
    try:
        inspector = inspect(engine)
        if not inspector.has_table(table_name, schema=schema):
            raise SourceNotFoundError(
                f"Table '{_qualified(table_name, schema)}' does not exist"
            )
        columns = inspector.get_columns(table_name, schema=schema)
        primary_key = inspector.get_pk_constraint(table_name, schema=schema).get(
            "constrained_columns", []
        )
    except SQLAlchemyError as e:
        raise SchemaAccessError(
            f"Cannot read schema of '{_qualified(table_name, schema)}': {e}"
        ) from e

    result = []
    for position, column in enumerate(columns):
        generated = _is_generated(column, list(primary_key), engine.dialect.name)
        result.append(
            SchemaColumn(
                name=column["name"],
                index=position,
                value_type=sql_type_to_value_type(column["type"]),
                nullable=bool(column.get("nullable", True)),
                is_identity=generated,
                is_auto_increment=generated,
            )
        )
    return result


def reflect_table(engine: Engine, table_name: str, schema: Optional[str] = None) -> Table:
    try:
        return Table(table_name, MetaData(), schema=schema, autoload_with=engine)
    except NoSuchTableError as e:
        raise SourceNotFoundError(
            f"Table '{_qualified(table_name, schema)}' does not exist"
        ) from e
    except SQLAlchemyError as e:
        raise SchemaAccessError(
            f"Cannot reflect '{_qualified(table_name, schema)}': {e}"
        ) from e


def _qualified(table_name: str, schema: Optional[str]) -> str:
    return f"{schema}.{table_name}" if schema else table_name


class SqlTableSource:
    """Reads every row of one database table, in storage order."""

    def __init__(self, engine: Engine, table_name: str, schema: Optional[str] = None):
        self.engine = engine
        self.table_name = table_name
        self.schema = schema

    @classmethod
    def from_settings(
        cls, table_name: str, settings: Optional[Settings] = None
    ) -> "SqlTableSource":
        settings = settings or get_settings()
        return cls(
            create_engine_from_settings(settings), table_name, settings.database_schema
        )

    def get_schema(self) -> List[SchemaColumn]:
        return reflect_columns(self.engine, self.table_name, self.schema)

    def get_rows(self) -> Iterator[TabularRow]:
        table = reflect_table(self.engine, self.table_name, self.schema)
        names = [column.name for column in table.columns]
        logger.debug(
            "sql.read_started",
            table=_qualified(self.table_name, self.schema),
            column_count=len(names),
        )
        with self.engine.connect() as conn:
            rows = conn.execute(select(table)).all()
        for row in rows:
            yield TabularRow([normalize_cell(v) for v in row], names)
