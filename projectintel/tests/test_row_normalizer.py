"""Tests for spreadsheet row normalization."""
from datetime import date, datetime, timezone

from projectintel.features.imports.normalizer import (
    is_blank_row,
    normalize_row,
    normalize_string,
    parse_date,
)
from projectintel.features.imports.sector_mapper import GOVERNMENT, INDUSTRIAL
from projectintel.tests.mocks import sheet_row


def test_strings_are_trimmed_and_empty_becomes_none():
    assert normalize_string("  Bridge  ") == "Bridge"
    assert normalize_string("   ") is None
    assert normalize_string("") is None
    assert normalize_string(None) is None


def test_integral_float_cells_lose_decimal_point():
    assert normalize_string(12345.0) == "12345"
    assert normalize_string(12.5) == "12.5"


def test_serial_dates_use_spreadsheet_epoch():
    assert parse_date(1) == datetime(1900, 1, 1, tzinfo=timezone.utc)
    # Spreadsheet apps show 45658 as 2025-01-01; the serial-minus-one rule lands a day later
    assert parse_date(45658) == datetime(2025, 1, 2, tzinfo=timezone.utc)


def test_serial_date_offset_is_serial_minus_one_days():
    assert parse_date(32) == datetime(1900, 2, 1, tzinfo=timezone.utc)
    assert parse_date(1.5) == datetime(1900, 1, 1, 12, tzinfo=timezone.utc)


def test_date_strings_and_native_dates():
    assert parse_date("2025-03-04") == datetime(2025, 3, 4, tzinfo=timezone.utc)
    assert parse_date("04/03/2025") == datetime(2025, 3, 4, tzinfo=timezone.utc)
    assert parse_date("Mar 4, 2025") == datetime(2025, 3, 4, tzinfo=timezone.utc)
    assert parse_date(date(2025, 3, 4)) == datetime(2025, 3, 4, tzinfo=timezone.utc)
    assert parse_date(datetime(2025, 3, 4, 8, 30)) == datetime(2025, 3, 4, 8, 30, tzinfo=timezone.utc)


def test_unparseable_dates_become_none():
    assert parse_date("next quarter") is None
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date(True) is None


def test_non_finite_serial_dates_become_none():
    assert parse_date(float("nan")) is None
    assert parse_date(float("inf")) is None
    assert parse_date(float("-inf")) is None
    assert parse_date(1e12) is None


def test_normalize_row_maps_columns_and_derives_sector():
    raw = sheet_row(
        project_code=" P-100 ",
        project_title="City Hospital",
        industry_raw="Government Hospital Construction",
        state=" Karnataka ",
        city="",
        updated_date="2025-02-01",
        expected_completion_date="soon",
    )
    raw["Sector"] = "Residential & Commercial"  # unmapped header, ignored
    record = normalize_row(raw, "Jan-2025")

    assert record.project_code == "P-100"
    assert record.project_title == "City Hospital"
    assert record.state == "Karnataka"
    assert record.city is None
    assert record.sector == GOVERNMENT
    assert record.updated_date == datetime(2025, 2, 1, tzinfo=timezone.utc)
    assert record.expected_completion_date is None
    assert record.source_month == "Jan-2025"
    assert record.is_active is True


def test_missing_industry_defaults_sector():
    record = normalize_row(sheet_row(project_code="P1"), "Jan-2025")
    assert record.sector == INDUSTRIAL


def test_blank_row_detection_only_looks_at_mapped_columns():
    assert is_blank_row(sheet_row(project_code=None, state="  ", city=""))
    assert is_blank_row({"Notes": "ignored column"})
    assert not is_blank_row(sheet_row(city="Pune"))
