"""
Field-to-column binding declarations and the resolver that turns them into an
ordered list of field bindings.

Bindings are declared explicitly, once per record type, instead of being
discovered by inspecting classes at runtime:

    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Sale:
    ...     region: str = ""
    ...     amount: int = 0
    >>> SALE = RecordType(
    ...     name="Sale",
    ...     factory=Sale,
    ...     fields=(
    ...         FieldSpec.attribute("region", ValueType.STRING,
    ...                             binding=ColumnBinding.by_name("Region")),
    ...         FieldSpec.attribute("amount", ValueType.INTEGER,
    ...                             binding=ColumnBinding.by_label("C")),
    ...     ),
    ... )
    >>> [b.column.display_name for b in resolve_bindings(SALE)]
    ['Region', '2']

A separate ``BindingMetadata`` can carry the bindings instead of the record
type itself, which keeps sheet-specific layouts out of the record definition.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from etl_toolbox.exceptions import ConfigurationError
from etl_toolbox.mapping.coercion import DeclaredType, ValueType
from etl_toolbox.mapping.columns import ColumnDescriptor, column_label_to_index
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ColumnBinding:
    """Declares which column a field binds to.

    At most one of ``column_index``, ``column_name`` or ``spreadsheet_label``
    may be set. When none is set the field binds to the column carrying the
    field's own name.
    """

    column_index: Optional[int] = None
    column_name: Optional[str] = None
    spreadsheet_label: Optional[str] = None

    def __post_init__(self) -> None:
        declared = [
            v
            for v in (self.column_index, self.column_name, self.spreadsheet_label)
            if v is not None
        ]
        if len(declared) > 1:
            raise ConfigurationError(
                "A column binding declares either an index, a name or a "
                f"spreadsheet label, not several: {self!r}"
            )
        if self.column_index is not None and self.column_index < 0:
            raise ConfigurationError(
                f"Column index must be non-negative, got {self.column_index}"
            )
        if self.spreadsheet_label is not None:
            # Validate eagerly so a bad label fails where it is declared
            column_label_to_index(self.spreadsheet_label)

    @classmethod
    def by_index(cls, index: int) -> "ColumnBinding":
        return cls(column_index=index)

    @classmethod
    def by_name(cls, name: str) -> "ColumnBinding":
        return cls(column_name=name)

    @classmethod
    def by_label(cls, label: str) -> "ColumnBinding":
        return cls(spreadsheet_label=label)

    @classmethod
    def by_field_name(cls) -> "ColumnBinding":
        return cls()

    def to_descriptor(self, field_name: str) -> ColumnDescriptor:
        if self.column_index is not None:
            return ColumnDescriptor(index=self.column_index)
        if self.spreadsheet_label is not None:
            return ColumnDescriptor(index=column_label_to_index(self.spreadsheet_label))
        if self.column_name:
            return ColumnDescriptor(name=self.column_name)
        return ColumnDescriptor(name=field_name)


@dataclass(frozen=True)
class FieldSpec:
    """One record field: declared type, accessor pair and optional binding."""

    name: str
    value_type: ValueType
    getter: Callable[[Any], Any]
    setter: Callable[[Any, Any], None]
    nullable: bool = False
    binding: Optional[ColumnBinding] = None

    @property
    def declared_type(self) -> DeclaredType:
        return DeclaredType(self.value_type, self.nullable)

    @classmethod
    def attribute(
        cls,
        name: str,
        value_type: ValueType,
        nullable: bool = False,
        binding: Optional[ColumnBinding] = None,
    ) -> "FieldSpec":
        """Field stored as a plain attribute of the record object."""

        def _get(record: Any) -> Any:
            return getattr(record, name)

        def _set(record: Any, value: Any) -> None:
            setattr(record, name, value)

        return cls(
            name=name,
            value_type=value_type,
            getter=_get,
            setter=_set,
            nullable=nullable,
            binding=binding,
        )

    @classmethod
    def key(
        cls,
        name: str,
        value_type: ValueType,
        nullable: bool = False,
        binding: Optional[ColumnBinding] = None,
    ) -> "FieldSpec":
        """Field stored under ``name`` in a dict-like record."""

        def _get(record: Any) -> Any:
            return record.get(name)

        def _set(record: Any, value: Any) -> None:
            record[name] = value

        return cls(
            name=name,
            value_type=value_type,
            getter=_get,
            setter=_set,
            nullable=nullable,
            binding=binding,
        )


@dataclass(frozen=True)
class RecordType:
    """A record shape: ordered fields plus a factory for empty instances."""

    name: str
    factory: Callable[[], Any]
    fields: Tuple[FieldSpec, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


@dataclass(frozen=True)
class BindingMetadata:
    """Bindings declared apart from the record type.

    Every field of the record type needs an entry here; an entry of ``None``
    keeps the field unbound.
    """

    name: str
    bindings: Tuple[Tuple[str, Optional[ColumnBinding]], ...]

    @classmethod
    def from_mapping(
        cls, name: str, bindings: Mapping[str, Optional[ColumnBinding]]
    ) -> "BindingMetadata":
        return cls(name=name, bindings=tuple(bindings.items()))

    def lookup(self, field_name: str) -> Tuple[bool, Optional[ColumnBinding]]:
        for entry_name, binding in self.bindings:
            if entry_name == field_name:
                return True, binding
        return False, None


@dataclass(frozen=True)
class FieldBinding:
    """A record field paired with the column it is declared to bind to."""

    column: ColumnDescriptor
    field: FieldSpec

    def __str__(self) -> str:
        return self.column.display_name


@lru_cache(maxsize=256)
def resolve_bindings(
    record_type: RecordType, metadata: Optional[BindingMetadata] = None
) -> Tuple[FieldBinding, ...]:
    """Produce the ordered field bindings for ``record_type``.

    Args:
        record_type: Record shape receiving/providing values
        metadata: Separate binding declarations; when omitted the bindings on
            the record type's own fields are used

    Raises:
        ConfigurationError: A record field has no entry on the metadata type,
            or no field is bound at all
    """
    source_name = metadata.name if metadata is not None else record_type.name
    result = []

    if metadata is not None:
        for entry_name, _ in metadata.bindings:
            if record_type.field(entry_name) is None:
                raise ConfigurationError(
                    f"The mapping metadata type '{metadata.name}' declares a binding "
                    f"for '{entry_name}', which is not a field of the record type "
                    f"'{record_type.name}'"
                )

    for spec in record_type.fields:
        if metadata is None:
            binding = spec.binding
        else:
            found, binding = metadata.lookup(spec.name)
            if not found:
                raise ConfigurationError(
                    f"The mapping metadata type '{metadata.name}' defines no binding "
                    f"for field '{spec.name}' of the record type '{record_type.name}'"
                )

        if binding is not None:
            result.append(FieldBinding(binding.to_descriptor(spec.name), spec))

    if not result:
        raise ConfigurationError(
            f"The mapping metadata type '{source_name}' defines no column binding "
            f"for any field of the record type '{record_type.name}'"
        )

    logger.debug(
        "mapping.resolved",
        record_type=record_type.name,
        metadata=source_name,
        binding_count=len(result),
    )
    return tuple(result)


def describe(bindings: Iterable[FieldBinding]) -> Tuple[str, ...]:
    """Display strings for a sequence of bindings."""
    return tuple(str(binding) for binding in bindings)
