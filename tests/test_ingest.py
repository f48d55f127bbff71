import pytest
import requests

from dcu_dashboard.exceptions import EmptyInputError, FormatError, RemoteFetchError
from dcu_dashboard.ingest import DashboardSession, is_meter_records, load_rows, read_rows
from dcu_dashboard.loaders.remote import fetch_remote_workbook
from dcu_dashboard.transforms import Layout

DCU_CSV = (
    "DCU;Status;Meters 01.01.2024;Meters 02.01.2024\n"
    "A;Online;100;900\n"
    "B;Offline;0;0\n"
)

METER_TSV = (
    "Meter Number\tLAT\tLONG\tStatus 01.01.2024\tDCU 01.01.2024\tStatus 01.02.2024\tDCU 01.02.2024\n"
    "1001\t-19.9\t-43.9\tOnline\tD1\tOffline\tD1\n"
    "1002\t-19.8\t-43.8\tOnline\tD2\tOnline\tD2\n"
)


class FakeResponse:
    def __init__(self, content=b"", status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class TestReadRows:
    def test_delimited_path(self, tmp_path):
        path = tmp_path / "dcus.csv"
        path.write_text(DCU_CSV, encoding="utf-8")
        rows = read_rows(path)
        assert rows[0] == {"DCU": "A", "Status": "Online", "Meters 01.01.2024": "100", "Meters 02.01.2024": "900"}

    def test_spreadsheet_bytes(self, make_xlsx):
        content = make_xlsx([["DCU", "Status"], ["A", "Online"]])
        assert read_rows(content, filename="dcus.XLSX") == [{"DCU": "A", "Status": "Online"}]

    def test_unknown_extension_is_read_as_text(self):
        assert read_rows(DCU_CSV.encode("latin-1"), filename="export")[1]["DCU"] == "B"

    def test_empty_file(self):
        with pytest.raises(EmptyInputError):
            read_rows(b"DCU;Status\n", filename="dcus.csv")

    def test_load_rows_melts_meter_exports(self):
        rows = load_rows(METER_TSV.encode("utf-8"), filename="meters.tsv")
        assert len(rows) == 4
        assert is_meter_records(rows)


class TestDashboardSession:
    def test_dcu_export(self):
        session = DashboardSession()
        snapshot = session.ingest(DCU_CSV.encode("utf-8"), filename="dcus.csv")

        assert session.has_data
        assert snapshot.layout is Layout.DCU_WIDE
        assert snapshot.source == "dcus.csv"
        assert snapshot.meter_history is None
        assert [r["DCU"] for r in snapshot.dcu_analysis.overloaded] == ["A"]
        assert [r["DCU"] for r in snapshot.dcu_analysis.no_reading] == ["B"]

    def test_meter_export(self, tmp_path):
        path = tmp_path / "meters.tsv"
        path.write_text(METER_TSV, encoding="utf-8")
        snapshot = DashboardSession().ingest(path)

        assert snapshot.layout is Layout.METER_WIDE
        assert snapshot.dcu_analysis is None
        assert snapshot.meter_history.latest_date == "01.02.2024"
        assert dict(snapshot.meter_history.status_counts) == {"Offline": 1, "Online": 1}

    def test_invalid_workbook_keeps_previous_snapshot(self):
        session = DashboardSession()
        previous = session.ingest(DCU_CSV.encode("utf-8"), filename="dcus.csv")

        with pytest.raises(FormatError):
            session.ingest(b"not a workbook", filename="dcus.xlsx")
        assert session.snapshot is previous

    def test_empty_file_keeps_previous_snapshot(self):
        session = DashboardSession()
        previous = session.ingest(DCU_CSV.encode("utf-8"), filename="dcus.csv")

        with pytest.raises(EmptyInputError):
            session.ingest(b"", filename="empty.csv")
        assert session.snapshot is previous

    def test_new_ingestion_replaces_snapshot(self):
        session = DashboardSession()
        session.ingest(DCU_CSV.encode("utf-8"), filename="first.csv")
        second = session.ingest(b"DCU;Status\nC;Online\n", filename="second.csv")

        assert session.snapshot is second
        assert second.dcu_analysis.total_dcus == 1
        assert second.layout is Layout.FLAT

    def test_remote(self, make_xlsx):
        content = make_xlsx([
            ["DCU", "Status", "Meters 01.01.2024"],
            ["A", "Online", 900],
        ])
        http = FakeSession(FakeResponse(content))
        snapshot = DashboardSession().ingest_remote("https://example.test/sheet.xlsx", session=http)

        assert http.calls[0][0] == "https://example.test/sheet.xlsx"
        assert snapshot.source == "https://example.test/sheet.xlsx"
        assert [r["DCU"] for r in snapshot.dcu_analysis.overloaded] == ["A"]

    def test_remote_failure_keeps_previous_snapshot(self):
        session = DashboardSession()
        previous = session.ingest(DCU_CSV.encode("utf-8"), filename="dcus.csv")

        with pytest.raises(RemoteFetchError):
            session.ingest_remote(session=FakeSession(error=requests.ConnectionError("down")))
        assert session.snapshot is previous


class TestFetchRemoteWorkbook:
    def test_uses_timeout(self, make_xlsx):
        http = FakeSession(FakeResponse(make_xlsx([["DCU"], ["A"]])))
        rows = fetch_remote_workbook("https://example.test/x", timeout=5, session=http)
        assert rows == [{"DCU": "A"}]
        assert http.calls == [("https://example.test/x", 5)]

    def test_http_error(self):
        http = FakeSession(FakeResponse(status_code=404))
        with pytest.raises(RemoteFetchError):
            fetch_remote_workbook("https://example.test/x", session=http)

    def test_body_is_not_a_workbook(self):
        http = FakeSession(FakeResponse(b"<html>sign in</html>"))
        with pytest.raises(FormatError):
            fetch_remote_workbook("https://example.test/x", session=http)


class TestBlankCellsInFirstRow:
    def test_latest_reading_column_comes_from_every_row(self, make_xlsx):
        content = make_xlsx([
            ["DCU", "Status", "Meters 01.01.2024", "Meters 02.01.2024"],
            ["A", "Online", 100, None],
            ["B", "Online", 100, 900],
        ])
        analysis = DashboardSession().ingest(content, filename="dcus.xlsx").dcu_analysis

        assert analysis.latest_column == "Meters 02.01.2024"
        assert [r["DCU"] for r in analysis.overloaded] == ["B"]
        assert [r["DCU"] for r in analysis.no_reading] == ["A"]

    def test_meter_dates_come_from_every_row(self, make_xlsx):
        content = make_xlsx([
            ["Meter Number", "LAT", "LONG", "Status 01.01.2024", "DCU 01.01.2024",
             "Status 01.02.2024", "DCU 01.02.2024"],
            [1001, -19.9, -43.9, "Online", "D1", None, "D1"],
            [1002, -19.8, -43.8, "Online", "D2", "Offline", "D2"],
        ])
        snapshot = DashboardSession().ingest(content, filename="meters.xlsx")

        assert snapshot.layout is Layout.METER_WIDE
        assert len(snapshot.rows) == 4
        history = snapshot.meter_history
        assert history.latest_date == "01.02.2024"
        assert dict(history.status_counts) == {"Unknown": 1, "Offline": 1}
