"""
DCU Network Dashboard: end-to-end analytics pipeline.

Runs the pipeline from an export file (or simulated data) to the
dashboard-ready outputs and prints smoke-test summaries.

Usage:
    python main.py                   # simulated DCU and meter exports
    python main.py dcus.xlsx         # a DCU export (.xlsx, .xls, .csv, .tsv, .txt)
    python main.py --remote          # the shared DCU sheet
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from dcu_dashboard.columns import ColumnKind, classify_columns, columns_of_kind
from dcu_dashboard.dashboard import (
    get_attention_table,
    get_collection_rate_summary,
    get_comment_summary,
    get_meter_status_table,
    get_status_summary,
    get_top_deviations,
    map_points,
)
from dcu_dashboard.exceptions import DashboardError
from dcu_dashboard.ingest import DashboardSession
from dcu_dashboard.metrics import analyse_dcus, analyse_meter_history
from dcu_dashboard.simulator import generate_dcu_export, generate_meter_export
from dcu_dashboard.transforms import reshape_wide_rows

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def print_dcu_analysis(analysis) -> None:
    print(f"\nLatest reading column: {analysis.latest_column}")
    print(f"DCUs: {analysis.total_dcus}")

    print("\nStatus:")
    print(get_status_summary(analysis).to_string(index=False))

    print("\nLoad (latest reading):")
    print(f"  Overloaded  (> 850): {len(analysis.overloaded)}")
    print(f"  Underloaded (< 50):  {len(analysis.underloaded)}")
    print(f"  No meters:           {len(analysis.no_reading)}")
    print(f"  Online, no meters:   {len(analysis.operational_no_reading)}")

    rates = get_collection_rate_summary(analysis)
    if not rates.empty:
        print("\nCollection rate:")
        print(rates.to_string(index=False))

    print(
        f"\nAttention cases: {analysis.total_attention_cases} "
        f"(under study: {analysis.total_in_study}, {analysis.in_study_percent}%)"
    )
    attention = get_attention_table(analysis)
    if not attention.empty:
        print(attention.head(10).to_string(index=False))

    comments = get_comment_summary(analysis)
    if not comments.empty:
        print("\nComments:")
        print(comments.to_string(index=False))

    deviations = get_top_deviations(analysis)
    if not deviations.empty:
        print("\nTop deviations from historical mean:")
        print(deviations.round(1).to_string(index=False))

    points = map_points(analysis.rows)
    print(f"\nDCUs with valid coordinates: {len(points)} of {analysis.total_dcus}")

    columns = classify_columns(list(analysis.rows))
    print("\nColumns by kind:")
    for kind in ColumnKind:
        names = columns_of_kind(columns, kind)
        if names:
            print(f"  {kind.value:<9} {len(names)}")


def print_meter_history(history) -> None:
    print(f"\nDates: {', '.join(history.dates)}")
    print(f"Latest: {history.latest_date} ({history.total_latest} meters)")
    print(f"Previous: {history.previous_date} ({history.total_previous} meters)")
    print(f"Meters without location at latest date: {history.no_location_count}")
    print(get_meter_status_table(history).to_string(index=False))


def run_simulated() -> None:
    print("[ 1 ] SIMULATED DCU EXPORT")
    print("-" * 40)
    dcu_rows = reshape_wide_rows(generate_dcu_export())
    print_dcu_analysis(analyse_dcus(dcu_rows))

    print("\n")
    print("[ 2 ] SIMULATED METER EXPORT")
    print("-" * 40)
    meter_rows = reshape_wide_rows(generate_meter_export())
    print_meter_history(analyse_meter_history(meter_rows))


def main(argv: list[str] | None = None) -> int:
    """Run the analytics pipeline and print smoke-test outputs."""
    parser = argparse.ArgumentParser(description="DCU dashboard pipeline")
    parser.add_argument("path", nargs="?", help="export file to analyse")
    parser.add_argument("--remote", action="store_true", help="fetch the shared DCU sheet")
    args = parser.parse_args(argv)

    print("=" * 70)
    print("  DCU NETWORK DASHBOARD")
    print("  Analytics Pipeline Smoke Test")
    print("=" * 70)
    print()

    if not args.path and not args.remote:
        run_simulated()
    else:
        session = DashboardSession()
        try:
            if args.remote:
                snapshot = session.ingest_remote()
            else:
                snapshot = session.ingest(args.path)
        except DashboardError as exc:
            logger.error("Could not load data: %s", exc)
            return 1

        print(f"Source: {snapshot.source} ({snapshot.layout.value}, {len(snapshot.rows)} records)")
        if snapshot.meter_history is not None:
            print_meter_history(snapshot.meter_history)
        elif snapshot.dcu_analysis is not None:
            print_dcu_analysis(snapshot.dcu_analysis)

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
