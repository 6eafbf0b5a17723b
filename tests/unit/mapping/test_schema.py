"""Unit tests for schema columns and tabular rows."""

import pytest

from etl_toolbox.mapping.coercion import ValueType
from etl_toolbox.mapping.schema import SchemaColumn, TabularRow


@pytest.mark.unit
class TestTabularRow:
    def test_lookup_by_index_and_name(self):
        row = TabularRow(["north", 5], ["Region", "Amount"])

        assert row[0] == "north"
        assert row["Amount"] == 5
        assert len(row) == 2
        assert list(row) == ["north", 5]

    def test_duplicate_names_resolve_to_first(self):
        row = TabularRow([1, 2], ["x", "x"])

        assert row["x"] == 1

    def test_unknown_name_raises_key_error(self):
        row = TabularRow([1], ["x"])

        with pytest.raises(KeyError, match="y"):
            row["y"]

    def test_empty_names_are_not_addressable(self):
        row = TabularRow([1, 2], ["", "b"])

        with pytest.raises(KeyError):
            row[""]
        assert row[0] == 1


@pytest.mark.unit
class TestSchemaColumn:
    def test_empty_name_becomes_index_only_descriptor(self):
        column = SchemaColumn(name="", index=3)

        assert column.descriptor.name is None
        assert column.descriptor.index == 3

    def test_declared_type_carries_nullability(self):
        column = SchemaColumn("Amount", 1, ValueType.INTEGER, nullable=False)

        assert str(column.declared_type) == "integer"

    def test_generated_requires_identity_and_auto_increment(self):
        assert SchemaColumn("id", 0, is_identity=True, is_auto_increment=True).is_generated
        assert not SchemaColumn("id", 0, is_identity=True).is_generated
