"""
Reconciliation of declared field bindings against an actual table schema.

The forward scan pairs every binding with the first schema column it matches.
Matched columns stay in the candidate pool by default, so two bindings naming
the same column both receive it; pass ``exclusive=True`` to hand each column
to at most one binding. Columns matched more than once are reported through
``SchemaMapping.shared_columns`` and a ``mapping.column_shared`` log event.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Sequence, Tuple

from etl_toolbox.mapping.bindings import FieldBinding
from etl_toolbox.mapping.schema import SchemaColumn
from etl_toolbox.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchedBinding:
    """A field binding paired with its schema column.

    Attributes:
        binding: The declared field binding
        column: The schema column the binding resolved to
        position: 0-based position of ``column`` in the schema list
    """

    binding: FieldBinding
    column: SchemaColumn
    position: int

    @property
    def display_name(self) -> str:
        return self.column.descriptor.display_name


@dataclass(frozen=True)
class SchemaMapping:
    """Outcome of reconciling bindings with a schema."""

    matched: Tuple[MatchedBinding, ...]
    unmatched_columns: Tuple[SchemaColumn, ...]
    unmatched_fields: Tuple[FieldBinding, ...]
    schema: Tuple[SchemaColumn, ...] = ()

    @property
    def shared_columns(self) -> Tuple[SchemaColumn, ...]:
        """Schema columns matched by more than one binding."""
        counts = Counter(m.position for m in self.matched)
        return tuple(
            self.schema[position]
            for position, count in sorted(counts.items())
            if count > 1
        )


def reconcile(
    field_bindings: Sequence[FieldBinding],
    schema_columns: Sequence[SchemaColumn],
    exclusive: bool = False,
) -> SchemaMapping:
    """Match ``field_bindings`` against ``schema_columns``.

    Args:
        field_bindings: Bindings in declaration order
        schema_columns: Columns in schema order
        exclusive: Remove matched columns from the candidate pool

    Returns:
        SchemaMapping whose ``matched`` list follows binding order
    """
    schema = tuple(schema_columns)
    descriptors = [column.descriptor for column in schema]
    taken = set()
    matched_bindings = set()
    matched = []

    for binding_position, binding in enumerate(field_bindings):
        for position, descriptor in enumerate(descriptors):
            if exclusive and position in taken:
                continue
            if binding.column.matches(descriptor):
                matched.append(MatchedBinding(binding, schema[position], position))
                taken.add(position)
                matched_bindings.add(binding_position)
                break

    if exclusive:
        unmatched_fields = tuple(
            b
            for i, b in enumerate(field_bindings)
            if i not in matched_bindings
        )
    else:
        unmatched_fields = tuple(
            b
            for b in field_bindings
            if not any(b.column.matches(d) for d in descriptors)
        )

    unmatched_columns = tuple(
        column
        for column, descriptor in zip(schema, descriptors)
        if not any(b.column.matches(descriptor) for b in field_bindings)
    )

    mapping = SchemaMapping(
        matched=tuple(matched),
        unmatched_columns=unmatched_columns,
        unmatched_fields=unmatched_fields,
        schema=schema,
    )

    for column in mapping.shared_columns:
        logger.warning(
            "mapping.column_shared",
            column=column.descriptor.display_name,
            position=column.index,
        )

    logger.debug(
        "mapping.reconciled",
        matched=len(mapping.matched),
        unmatched_columns=len(unmatched_columns),
        unmatched_fields=len(unmatched_fields),
    )
    return mapping
