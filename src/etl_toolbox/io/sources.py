"""Contracts between the mapping engine and concrete tabular backends."""

from typing import Any, Iterable, List, Protocol, Sequence, Tuple, runtime_checkable

from etl_toolbox.mapping.schema import SchemaColumn, TabularRow


@runtime_checkable
class TabularSource(Protocol):
    """A readable table: one schema, then rows in source order."""

    def get_schema(self) -> List[SchemaColumn]: ...

    def get_rows(self) -> Iterable[TabularRow]: ...


@runtime_checkable
class TabularSink(Protocol):
    """A writable table store addressed by table name."""

    def get_schema(self, table_name: str) -> List[SchemaColumn]: ...

    def bulk_write(
        self,
        table_name: str,
        rows: Sequence[Sequence[Any]],
        column_mapping: Sequence[Tuple[int, int]],
    ) -> int: ...
