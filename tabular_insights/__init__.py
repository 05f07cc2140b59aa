"""Schema-free summaries of CSV and JSON tables."""

from tabular_insights.analysis import AnalysisResult, TrendPoint, analyze_records, format_number, to_number
from tabular_insights.csv_tokenizer import parse_csv, parse_csv_line

__all__ = [
    "AnalysisResult",
    "TrendPoint",
    "analyze_records",
    "format_number",
    "parse_csv",
    "parse_csv_line",
    "to_number",
]
