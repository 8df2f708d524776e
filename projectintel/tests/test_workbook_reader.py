"""Tests for reading uploaded workbooks."""
import pytest

from projectintel.core.errors import ValidationError
from projectintel.features.imports.reader import read_workbook
from projectintel.tests.mocks import build_workbook


def test_rows_are_keyed_by_header_and_numbered_from_two():
    data = build_workbook(
        [{"P-Code": "P1", "State": "Karnataka"}, {"P-Code": "P2", "State": "Kerala"}],
        headers=["P-Code", "State"],
    )
    rows = read_workbook(data)
    assert [r.row_number for r in rows] == [2, 3]
    assert rows[0].values == {"P-Code": "P1", "State": "Karnataka"}


def test_header_only_workbook_is_rejected():
    data = build_workbook([], headers=["P-Code", "State"])
    with pytest.raises(ValidationError) as exc:
        read_workbook(data)
    assert "at least a header row and one data row" in exc.value.message


def test_garbage_bytes_are_rejected():
    with pytest.raises(ValidationError) as exc:
        read_workbook(b"definitely not a workbook")
    assert exc.value.message.startswith("Failed to parse Excel file")
