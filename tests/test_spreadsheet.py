from datetime import datetime

import pytest

from dcu_dashboard.exceptions import FormatError
from dcu_dashboard.loaders.spreadsheet import read_spreadsheet_rows
from dcu_dashboard.loaders.utils import clean_cell


class TestReadXlsx:
    def test_header_row_names_fields(self, make_xlsx):
        content = make_xlsx([
            ["DCU", "Status", "Meters 01.01.2024"],
            ["A", "Online", 120],
            ["B", "Offline", 0],
        ])
        rows = read_spreadsheet_rows(content)
        assert rows == [
            {"DCU": "A", "Status": "Online", "Meters 01.01.2024": 120},
            {"DCU": "B", "Status": "Offline", "Meters 01.01.2024": 0},
        ]

    def test_numbers_stay_numeric(self, make_xlsx):
        content = make_xlsx([["DCU", "LAT"], ["A", -19.92]])
        row = read_spreadsheet_rows(content)[0]
        assert row["LAT"] == pytest.approx(-19.92)
        assert isinstance(row["LAT"], float)

    def test_empty_cells_are_omitted(self, make_xlsx):
        content = make_xlsx([["DCU", "Status", "Comentário"], ["A", None, "Em estudo"]])
        row = read_spreadsheet_rows(content)[0]
        assert "Status" not in row
        assert row["Comentário"] == "Em estudo"

    def test_blank_rows_are_skipped(self, make_xlsx):
        content = make_xlsx([["DCU"], ["A"], [None], ["B"]])
        assert read_spreadsheet_rows(content) == [{"DCU": "A"}, {"DCU": "B"}]

    def test_blank_headers_get_placeholder_names(self, make_xlsx):
        content = make_xlsx([["DCU", None, None], ["A", 1, 2]])
        assert read_spreadsheet_rows(content) == [{"DCU": "A", "__EMPTY": 1, "__EMPTY_1": 2}]

    def test_date_cells_become_datetime(self, make_xlsx):
        content = make_xlsx([["DCU", "Instalação"], ["A", datetime(2024, 1, 15)]])
        assert read_spreadsheet_rows(content)[0]["Instalação"] == datetime(2024, 1, 15)

    def test_only_first_sheet_is_read(self, make_xlsx):
        content = make_xlsx([["DCU"], ["A"]], [["DCU"], ["Z"]])
        assert read_spreadsheet_rows(content) == [{"DCU": "A"}]

    def test_header_only_sheet(self, make_xlsx):
        assert read_spreadsheet_rows(make_xlsx([["DCU", "Status"]])) == []

    def test_read_from_path(self, make_xlsx, tmp_path):
        path = tmp_path / "dcus.xlsx"
        path.write_bytes(make_xlsx([["DCU"], ["A"]]))
        assert read_spreadsheet_rows(path) == [{"DCU": "A"}]
        assert read_spreadsheet_rows(str(path)) == [{"DCU": "A"}]


class TestInvalidContent:
    def test_invalid_xlsx(self):
        with pytest.raises(FormatError):
            read_spreadsheet_rows(b"DCU;Status\nA;Online\n", ".xlsx")

    def test_invalid_xls(self):
        with pytest.raises(FormatError):
            read_spreadsheet_rows(b"not a legacy workbook", ".xls")


@pytest.mark.parametrize("value, expected", [
    (850.0, 850),
    (850.5, 850.5),
    ("850.0", "850.0"),
    (12, 12),
])
def test_clean_cell(value, expected):
    result = clean_cell(value)
    assert result == expected
    assert type(result) is type(expected)
