"""
Tabular record loading (.xlsx / .xls / .csv) with pandas.

Rows come back as plain dicts keyed by column header. Cell values are
normalized so they serialize into Qdrant payloads unchanged: NaN becomes None,
integral floats (how spreadsheets store ids) become int, numpy scalars become
Python scalars and timestamps become ISO-8601 strings.
"""

import math
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np
import pandas as pd

from cascadesync.shared.errors import RecordLoadError
from cascadesync.shared.observability import get_logger

logger = get_logger(__name__)

EXCEL_EXTENSIONS = {".xlsx", ".xls"}
CSV_EXTENSIONS = {".csv"}


def _normalize_value(value: Any) -> Any:
    if isinstance(value, np.generic):
        value = value.item()
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in EXCEL_EXTENSIONS:
        # First sheet only
        return pd.read_excel(path, sheet_name=0)
    if suffix in CSV_EXTENSIONS:
        return pd.read_csv(path)
    raise RecordLoadError(f"Unsupported file type: {path.suffix or path.name}")


def load_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Load every row of the first sheet of a spreadsheet (or a CSV) as dicts.

    Raises:
        FileNotFoundError: If the file does not exist
        RecordLoadError: If the file type is unsupported or cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    try:
        frame = _read_frame(path)
    except RecordLoadError:
        raise
    except Exception as exc:
        raise RecordLoadError(f"Failed to read {path}: {exc}") from exc

    frame = frame.astype(object)
    records = [
        {str(column): _normalize_value(value) for column, value in row.items()}
        for row in frame.to_dict(orient="records")
    ]

    logger.info(
        "Records loaded",
        file_path=str(path),
        records=len(records),
        columns=len(frame.columns),
    )
    return records
