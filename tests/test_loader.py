"""
Unit tests for record loading from files, JSON text and DataFrames.
"""

import json

import numpy as np
import pandas as pd
import pytest

from tabular_insights.analysis import analyze_records
from tabular_insights.loader import (
    detect_file_type,
    load_records,
    records_from_frame,
    records_from_json,
)


class TestDetectFileType:

    def test_json_extension(self):
        assert detect_file_type("sales.json") == "json"
        assert detect_file_type("SALES.JSON") == "json"

    def test_everything_else_is_csv(self):
        assert detect_file_type("sales.csv") == "csv"
        assert detect_file_type("notes.txt") == "csv"
        assert detect_file_type("json") == "csv"


class TestRecordsFromJson:

    def test_array_of_objects(self):
        records = records_from_json('[{"region": "North", "units": 10}]')
        assert records == [{"region": "North", "units": 10}]

    def test_non_array_yields_no_rows(self):
        assert records_from_json('{"region": "North"}') == []
        assert records_from_json("42") == []

    def test_invalid_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            records_from_json("[{")

    def test_nan_and_infinity_constants_raise(self):
        for text in ('[{"a": NaN}]', '[{"a": Infinity}]', '[{"a": -Infinity}]'):
            with pytest.raises(ValueError):
                records_from_json(text)


class TestRecordsFromFrame:

    def test_nan_becomes_none_and_numbers_are_plain(self):
        df = pd.DataFrame({
            "region": ["North", None],
            "units":  [10.5, np.nan],
            "count":  np.array([1, 2], dtype=np.int64),
        })
        records = records_from_frame(df)

        assert records[0] == {"region": "North", "units": 10.5, "count": 1}
        assert records[1] == {"region": None, "units": None, "count": 2}
        assert type(records[0]["units"]) is float
        assert type(records[1]["count"]) is int

    def test_frame_records_analyze_like_json(self):
        df = pd.DataFrame({"region": ["North", "South", "North"], "units": [10, 5, 8]})
        result = analyze_records(records_from_frame(df))
        assert result["trends"] == [
            {"label": "North", "value": 18},
            {"label": "South", "value": 5},
        ]
        json.dumps(result)

    def test_empty_frame(self):
        assert records_from_frame(pd.DataFrame()) == []


class TestLoadRecords:

    def test_csv_file(self, tmp_path):
        path = tmp_path / "sales.csv"
        path.write_text("region,units\nNorth,10\nSouth,5\n", encoding="utf-8")
        assert load_records(str(path)) == [
            {"region": "North", "units": "10"},
            {"region": "South", "units": "5"},
        ]

    def test_json_file(self, tmp_path):
        path = tmp_path / "sales.json"
        path.write_text(json.dumps([{"region": "North", "units": 10}]), encoding="utf-8")
        assert load_records(str(path)) == [{"region": "North", "units": 10}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_records(str(tmp_path / "missing.csv"))

    def test_byte_order_mark_is_stripped(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("region,units\nNorth,10\n", encoding="utf-8-sig")
        assert load_records(str(path)) == [{"region": "North", "units": "10"}]

    def test_json_file_with_byte_order_mark(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text('[{"region": "North"}]', encoding="utf-8-sig")
        assert load_records(str(path)) == [{"region": "North"}]
