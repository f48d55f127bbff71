import io

import openpyxl
import pytest


@pytest.fixture
def make_xlsx():
    """Build workbook bytes from lists of rows, one list per sheet."""

    def _make(*sheets):
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        for idx, rows in enumerate(sheets):
            ws = wb.create_sheet(f"Sheet{idx + 1}")
            for row in rows:
                ws.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def dcu_rows():
    """The two-DCU export used throughout the dashboard documentation."""
    return [
        {"DCU": "A", "Status": "Online", "Meters 01.01.2024": "100", "Meters 02.01.2024": "900"},
        {"DCU": "B", "Status": "Offline", "Meters 01.01.2024": "0", "Meters 02.01.2024": "0"},
    ]