"""
DCU Network Dashboard

Analytics backend for a utility metering network: turns spreadsheet and
delimited exports of data collection units (DCUs) and their meters into a
single, dashboard-ready analysis result.

To load a file:
    Call ingest.load_rows(path) and pass the rows to metrics.analyse_dcus()
    (one row per DCU) or metrics.analyse_meter_history() (one row per
    meter and date).

To connect to Streamlit/Dash:
    Use the frame builders in dashboard to feed Plotly charts and tables.
    They only read the AnalysisResult and never derive new metrics.

To adapt to another deployment:
    Build a config.DerivationConfig with the local state labels, rate column
    and load thresholds instead of editing the engine.
"""
