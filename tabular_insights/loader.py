"""
tabular_insights/loader.py - Turns files, JSON text and DataFrames into records.

The analysis engine only sees a list of records. This module owns the
decision between the CSV and JSON decoders and the conversion of pandas
DataFrames, whose cells arrive as numpy scalars and NaN.

Usage:
    records = load_records("q3_sales.csv")
    records = records_from_json('[{"region": "North", "units": 10}]')
    records = records_from_frame(df)
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from tabular_insights.csv_tokenizer import parse_csv

log = logging.getLogger(__name__)

Record = Dict[str, Any]


def detect_file_type(file_name: str) -> str:
    """'json' for *.json (any case), otherwise 'csv'."""
    return "json" if file_name.lower().endswith(".json") else "csv"


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def records_from_json(text: str) -> List[Record]:
    """
    Decode a JSON document into records.

    Only a top-level array is treated as rows; any other JSON value
    yields an empty list.

    Raises:
        ValueError: If the text is not valid JSON, including the bare
                    NaN / Infinity constants json accepts by default.
                    Syntax errors arrive as json.JSONDecodeError.
    """
    parsed = json.loads(text, parse_constant=_reject_constant)
    if not isinstance(parsed, list):
        log.debug(f"JSON top level is {type(parsed).__name__}, not an array; no rows.")
        return []
    return parsed


def _plain(value: Any) -> Any:
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, np.generic):
        return value.item()
    return value


def records_from_frame(df: pd.DataFrame) -> List[Record]:
    """
    Convert a DataFrame into records, one per row, in row order.

    NaN / NA cells become None and numpy scalars become Python numbers,
    so the engine's output stays JSON-serializable.
    """
    records = [
        {str(col): _plain(value) for col, value in zip(df.columns, row)}
        for row in df.itertuples(index=False, name=None)
    ]
    log.debug(f"Converted DataFrame {df.shape} into {len(records)} records.")
    return records


def load_records(filepath: str) -> List[Record]:
    """
    Read a .csv or .json file into records.

    Raises:
        FileNotFoundError:    If the file does not exist.
        ValueError:        If a .json file holds invalid JSON.
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    content = path.read_text(encoding="utf-8-sig")
    if detect_file_type(path.name) == "json":
        records = records_from_json(content)
    else:
        records = parse_csv(content)

    log.info(f"Loaded '{path.stem}': {len(records):,} records")
    return records
