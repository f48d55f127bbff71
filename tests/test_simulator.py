from dcu_dashboard.loaders.utils import dated_columns
from dcu_dashboard.metrics import analyse_dcus, analyse_meter_history
from dcu_dashboard.simulator import generate_dcu_export, generate_meter_export
from dcu_dashboard.transforms import Layout, detect_layout, reshape_wide_rows


class TestDcuExport:
    def test_shape(self):
        rows = generate_dcu_export(n_dcus=25, n_dates=4)
        assert len(rows) == 25
        assert len(dated_columns(rows[0], "Meters")) == 4
        assert detect_layout(rows) is Layout.DCU_WIDE

    def test_reproducible(self):
        assert generate_dcu_export(seed=7) == generate_dcu_export(seed=7)
        assert generate_dcu_export(seed=7) != generate_dcu_export(seed=8)

    def test_latest_token_is_latest_month(self):
        analysis = analyse_dcus(generate_dcu_export(n_dates=6, end="2024-06-30"))
        assert analysis.latest_date == "01.06.2024"

    def test_cells_are_strings_or_none(self):
        for row in generate_dcu_export(n_dcus=20):
            assert all(v is None or isinstance(v, str) for v in row.values())

    def test_analysis_runs(self):
        analysis = analyse_dcus(generate_dcu_export())
        assert analysis.total_dcus == 60
        assert analysis.operational
        assert analysis.with_collection_rate


class TestMeterExport:
    def test_melts_to_one_record_per_meter_and_date(self):
        rows = reshape_wide_rows(generate_meter_export(n_meters=50, n_dates=3))
        assert len(rows) == 150

        history = analyse_meter_history(rows)
        assert history.latest_date == "01.06.2024"
        assert history.total_latest == 50
        assert history.total_previous == 50
