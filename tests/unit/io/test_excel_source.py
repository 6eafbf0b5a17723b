"""Tests for the DataFrame and workbook sources."""

import pandas as pd
import pytest

from etl_toolbox.exceptions import SchemaAccessError, SourceNotFoundError
from etl_toolbox.io.readers.excel_reader import (
    DataFrameSource,
    ExcelSheetSource,
    clean_header,
)
from etl_toolbox.io.sources import TabularSource
from etl_toolbox.mapping.coercion import ValueType


@pytest.fixture
def workbook(tmp_path):
    path = tmp_path / "sales.xlsx"
    frame = pd.DataFrame(
        {
            " Region ": ["north", "south", None],
            "Amount": [1, 2, 3],
            "Price": [1.5, None, 2.25],
        }
    )
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name="Sheet1", index=False)
        frame.head(1).to_excel(writer, sheet_name="Other", index=False)
    return path


@pytest.mark.unit
class TestCleanHeader:
    @pytest.mark.parametrize(
        "raw, expected",
        [(" Region ", "Region"), ("Sold\nOn", "SoldOn"), ("Unnamed: 3", ""), (None, "")],
    )
    def test_clean_header(self, raw, expected):
        assert clean_header(raw) == expected


@pytest.mark.unit
class TestDataFrameSource:
    def test_schema_from_dtypes(self):
        frame = pd.DataFrame(
            {
                "a": [1, 2],
                "b": [1.0, None],
                "c": ["x", "y"],
                "d": [True, False],
                "e": pd.to_datetime(["2024-01-01", "2024-01-02"]),
            }
        )

        schema = DataFrameSource(frame).get_schema()

        assert [(c.name, c.index) for c in schema] == [
            ("a", 0),
            ("b", 1),
            ("c", 2),
            ("d", 3),
            ("e", 4),
        ]
        assert schema[0].value_type is ValueType.INTEGER
        assert schema[1].value_type is ValueType.FLOAT
        assert schema[3].value_type is ValueType.BOOLEAN
        assert schema[4].value_type is ValueType.DATETIME

    def test_rows_have_native_values_and_none_for_missing(self):
        frame = pd.DataFrame({"a": [1, 2], "b": [1.5, None]})

        rows = list(DataFrameSource(frame).get_rows())

        assert rows[0]["a"] == 1 and type(rows[0]["a"]) is int
        assert rows[1]["b"] is None
        assert rows[1][0] == 2

    def test_satisfies_source_protocol(self):
        assert isinstance(DataFrameSource(pd.DataFrame()), TabularSource)

    def test_default_name_from_settings(self):
        assert DataFrameSource(pd.DataFrame()).name == "table1"


@pytest.mark.integration
class TestExcelSheetSource:
    def test_reads_schema_and_rows(self, workbook):
        source = ExcelSheetSource(workbook)

        schema = source.get_schema()
        rows = list(source.get_rows())

        assert [c.name for c in schema] == ["Region", "Amount", "Price"]
        assert len(rows) == 3
        assert rows[0]["Region"] == "north"
        assert rows[1]["Price"] is None
        assert rows[2]["Region"] is None

    def test_named_sheet(self, workbook):
        rows = list(ExcelSheetSource(workbook, sheet="Other").get_rows())

        assert len(rows) == 1

    def test_max_rows(self, workbook):
        rows = list(ExcelSheetSource(workbook, max_rows=2).get_rows())

        assert len(rows) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceNotFoundError):
            ExcelSheetSource(tmp_path / "absent.xlsx").get_schema()

    def test_missing_sheet(self, workbook):
        with pytest.raises(SourceNotFoundError, match="Nope"):
            ExcelSheetSource(workbook, sheet="Nope").get_schema()

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip archive")

        with pytest.raises(SchemaAccessError):
            ExcelSheetSource(path).get_schema()

    def test_read_frame_has_cleaned_headers(self, workbook):
        source = ExcelSheetSource(workbook)

        frame = source.read_frame()

        assert list(frame.columns) == ["Region", "Amount", "Price"]
