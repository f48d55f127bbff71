"""
Simulated exports for the DCU dashboard.

Generates DCU and meter exports in the same wide layouts the field teams
send, so the dashboard and pipeline can run without real data. All values
are synthetic.
"""

import numpy as np
import pandas as pd

from .config import (
    ANALYSIS_STATUS_COLUMN,
    COLLECTION_RATE_COLUMN,
    COMMENT_COLUMN,
    DCU_COLUMN,
    GROUP_PREFIX,
    LAT_COLUMN,
    LONG_COLUMN,
    METER_NUMBER_COLUMN,
    NOT_AVAILABLE,
    READING_PREFIX,
    STATE_PREFIX,
    STATUS_COLUMN,
)

# Seed for reproducibility
_SEED = 42

# Service area bounding box (lat, long)
_AREA = {"lat": (-20.5, -19.5), "long": (-44.5, -43.5)}

_STATUSES = ["Online", "Offline", "Não Registrado"]
_STATUS_WEIGHTS = [0.82, 0.13, 0.05]

_COMMENTS = [
    (None, 0.55),
    ("Em estudo", 0.15),
    ("Aguardando visita técnica", 0.10),
    ("Sem sinal GPRS", 0.10),
    ("Interno - revisar cadastro", 0.05),
    ("null", 0.05),
]

_ANALYSIS_STAGES = ["Identificado", "Em análise", "Aguardando atuação", "Solucionado"]

_METER_STATUSES = ["Online", "Offline", "Removidos"]
_METER_STATUS_WEIGHTS = [0.88, 0.10, 0.02]


def _date_tokens(end: str, n_dates: int, freq: str) -> list[str]:
    # month starts within one year keep DD.MM.YYYY tokens in date order
    dates = pd.date_range(end=end, periods=n_dates, freq=freq)
    return [d.strftime("%d.%m.%Y") for d in dates]


def _coordinate(rng: np.random.Generator, key: str) -> str:
    low, high = _AREA[key]
    return f"{rng.uniform(low, high):.6f}"


def generate_dcu_export(
    n_dcus: int = 60,
    n_dates: int = 6,
    end: str = "2024-06-30",
    seed: int = _SEED,
) -> list[dict]:
    """Generate a wide DCU export: one row per DCU, one Meters column per month.

    Cells are strings, as in a delimited export. A few DCUs get "#N/D"
    readings, missing coordinates or unparseable collection rates.
    """
    rng = np.random.default_rng(seed)
    tokens = _date_tokens(end, n_dates, "MS")
    comments, comment_weights = zip(*_COMMENTS)

    rows = []
    for idx in range(n_dcus):
        status = rng.choice(_STATUSES, p=_STATUS_WEIGHTS)
        base_load = int(rng.lognormal(mean=6.0, sigma=0.6))

        row = {
            DCU_COLUMN: f"DCU{idx + 1:04d}",
            STATUS_COLUMN: str(status),
            LAT_COLUMN: _coordinate(rng, "lat") if rng.random() > 0.05 else "0",
            LONG_COLUMN: _coordinate(rng, "long") if rng.random() > 0.05 else "0",
        }

        comment = comments[rng.choice(len(comments), p=comment_weights)]
        row[COMMENT_COLUMN] = comment
        row[ANALYSIS_STATUS_COLUMN] = (
            str(rng.choice(_ANALYSIS_STAGES)) if comment == "Em estudo" else None
        )

        if rng.random() < 0.1:
            row[COLLECTION_RATE_COLUMN] = NOT_AVAILABLE
        else:
            rate = min(100.0, rng.normal(97.0, 2.5))
            row[COLLECTION_RATE_COLUMN] = f"{rate:.1f}%".replace(".", ",")

        for token in tokens:
            if status != "Online" and rng.random() < 0.5:
                value = "0"
            elif rng.random() < 0.03:
                value = NOT_AVAILABLE
            else:
                drift = rng.normal(1.0, 0.08)
                value = str(max(0, int(base_load * drift)))
            row[f"{READING_PREFIX} {token}"] = value

        rows.append(row)

    return rows


def generate_meter_export(
    n_meters: int = 200,
    n_dates: int = 3,
    n_dcus: int = 20,
    end: str = "2024-06-30",
    seed: int = _SEED,
) -> list[dict]:
    """Generate a wide meter export with paired Status/DCU columns per date."""
    rng = np.random.default_rng(seed)
    tokens = _date_tokens(end, n_dates, "MS")

    rows = []
    for idx in range(n_meters):
        home_dcu = f"DCU{rng.integers(1, n_dcus + 1):04d}"
        row = {
            METER_NUMBER_COLUMN: f"{10_000_000 + idx}",
            LAT_COLUMN: _coordinate(rng, "lat") if rng.random() > 0.03 else "0",
            LONG_COLUMN: _coordinate(rng, "long"),
        }
        for token in tokens:
            row[f"{STATE_PREFIX} {token}"] = str(rng.choice(_METER_STATUSES, p=_METER_STATUS_WEIGHTS))
            row[f"{GROUP_PREFIX} {token}"] = home_dcu
        rows.append(row)

    return rows
