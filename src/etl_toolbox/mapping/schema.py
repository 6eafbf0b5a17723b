"""Schema and row types exchanged with tabular sources and sinks."""

import collections.abc
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

from etl_toolbox.mapping.coercion import DeclaredType, ValueType
from etl_toolbox.mapping.columns import ColumnDescriptor


@dataclass(frozen=True)
class SchemaColumn:
    """One column of a source or target table as observed at call time.

    Attributes:
        name: Column header / database column name (may be empty)
        index: 0-based ordinal within the table
        value_type: Declared type tag of the column
        nullable: Whether the column accepts NULL
        is_identity: Sink only: identity column
        is_auto_increment: Sink only: value generated by the database
    """

    name: Optional[str]
    index: int
    value_type: ValueType = ValueType.OBJECT
    nullable: bool = True
    is_identity: bool = False
    is_auto_increment: bool = False

    @property
    def descriptor(self) -> ColumnDescriptor:
        return ColumnDescriptor(name=self.name or None, index=self.index)

    @property
    def declared_type(self) -> DeclaredType:
        return DeclaredType(self.value_type, self.nullable)

    @property
    def is_generated(self) -> bool:
        return self.is_identity and self.is_auto_increment

    def __str__(self) -> str:
        return f"{self.index} {self.name} ({self.value_type.value})"


class TabularRow(collections.abc.Sequence):
    """An ordered row of values addressable by ordinal or column name.

    Name lookup returns the first column carrying that name, so sheets with
    duplicated headers still resolve deterministically.
    """

    __slots__ = ("_values", "_positions")

    def __init__(
        self, values: Sequence[Any], names: Optional[Sequence[Optional[str]]] = None
    ):
        self._values: Tuple[Any, ...] = tuple(values)
        positions: Dict[str, int] = {}
        for position, name in enumerate(names or ()):
            if name and name not in positions:
                positions[name] = position
        self._positions = positions

    def __getitem__(self, key: Union[int, str]) -> Any:  # type: ignore[override]
        if isinstance(key, str):
            try:
                return self._values[self._positions[key]]
            except KeyError:
                raise KeyError(f"Column '{key}' does not belong to this row") from None
        return self._values[key]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"TabularRow({list(self._values)!r})"
