import pytest

from dcu_dashboard.loaders.utils import dated_column_token, dated_columns
from dcu_dashboard.transforms import (
    Layout,
    detect_layout,
    melt_meter_rows,
    reshape_wide_rows,
    rows_to_frame,
)


def meter_rows():
    return [
        {
            "Meter Number": "1001", "LAT": "-19.9", "LONG": "-43.9",
            "Status 01.01.2024": "Online", "DCU 01.01.2024": "D1",
            "Status 01.02.2024": "Offline", "DCU 01.02.2024": "D1",
        },
        {
            "Meter Number": "1002", "LAT": "0", "LONG": "0",
            "Status 01.01.2024": "Online", "DCU 01.01.2024": "D2",
            "Status 01.02.2024": None, "DCU 01.02.2024": "D3",
        },
    ]


class TestDatedColumns:
    @pytest.mark.parametrize("column, token", [
        ("Meters 01.03.2024", "01.03.2024"),
        ("Meters 1.03.2024", None),
        ("Meters 01.03.2024 (old)", None),
        ("Meters  01.03.2024", None),
        ("Meters 01.03.2024 ", None),
        ("Meters01.03.2024", None),
        ("Meters", None),
        ("Status 01.03.2024", None),
        (None, None),
    ])
    def test_token(self, column, token):
        assert dated_column_token(column, "Meters") == token

    def test_column_order_is_kept(self):
        columns = ["DCU", "Meters 02.01.2024", "Status", "Meters 01.01.2024"]
        assert list(dated_columns(columns, "Meters")) == ["Meters 02.01.2024", "Meters 01.01.2024"]


class TestDetectLayout:
    def test_meter_wide(self):
        assert detect_layout(meter_rows()) is Layout.METER_WIDE

    def test_dcu_wide(self, dcu_rows):
        assert detect_layout(dcu_rows) is Layout.DCU_WIDE

    def test_status_family_alone_is_flat(self):
        assert detect_layout([{"Meter Number": "1", "Status 01.01.2024": "Online"}]) is Layout.FLAT

    def test_empty(self):
        assert detect_layout([]) is Layout.FLAT


class TestMeltMeterRows:
    def test_one_record_per_meter_and_date(self):
        assert len(melt_meter_rows(meter_rows())) == 4

    def test_records_grouped_by_date(self):
        records = melt_meter_rows(meter_rows())
        assert [(r["Data"], r["Meter Number"]) for r in records] == [
            ("01.01.2024", "1001"),
            ("01.01.2024", "1002"),
            ("01.02.2024", "1001"),
            ("01.02.2024", "1002"),
        ]

    def test_record_content(self):
        record = melt_meter_rows(meter_rows())[2]
        assert record == {
            "Meter Number": "1001",
            "LAT": "-19.9",
            "LONG": "-43.9",
            "Status": "Offline",
            "DCU": "D1",
            "Data": "01.02.2024",
        }

    def test_blank_status_is_kept(self):
        record = melt_meter_rows(meter_rows())[3]
        assert record["Status"] is None
        assert record["DCU"] == "D3"

    def test_missing_paired_column(self):
        rows = [{"Meter Number": "1", "Status 01.01.2024": "Online", "DCU 01.02.2024": "D1"}]
        records = melt_meter_rows(rows)
        assert len(records) == 1
        assert records[0]["DCU"] is None


class TestPassThrough:
    def test_dcu_rows_are_returned_as_is(self, dcu_rows):
        assert reshape_wide_rows(dcu_rows) is dcu_rows

    def test_flat_rows_are_returned_as_is(self):
        rows = [{"DCU": "A", "Status": "Online"}]
        assert reshape_wide_rows(rows) is rows

    def test_melted_rows_are_not_melted_again(self):
        melted = reshape_wide_rows(meter_rows())
        assert reshape_wide_rows(melted) is melted

    def test_reshape_is_idempotent_for_dcu_rows(self, dcu_rows):
        assert reshape_wide_rows(reshape_wide_rows(dcu_rows)) == dcu_rows


def test_rows_to_frame_keeps_column_order():
    frame = rows_to_frame([{"b": 1, "a": 2}, {"a": 3, "c": 4}])
    assert list(frame.columns) == ["b", "a", "c"]
    assert frame["c"].isna().iloc[0]


def test_rows_to_frame_empty():
    assert rows_to_frame([]).empty


def test_layout_uses_columns_missing_from_first_row():
    rows = [
        {"Meter Number": "1", "Status 01.01.2024": "Online"},
        {"Meter Number": "2", "Status 01.01.2024": "Online", "DCU 01.01.2024": "D1"},
    ]
    assert detect_layout(rows) is Layout.METER_WIDE


def test_melt_uses_dates_missing_from_first_row():
    rows = meter_rows()
    del rows[0]["Status 01.02.2024"]
    records = melt_meter_rows(rows)
    assert len(records) == 4
    assert {r["Data"] for r in records} == {"01.01.2024", "01.02.2024"}
