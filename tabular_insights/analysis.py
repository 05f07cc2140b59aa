"""
tabular_insights/analysis.py - Schema-free analysis of loosely-typed records.

Given a list of records (column name -> number or string), infers which
columns are numeric and which are categorical, then derives a fixed-shape
result:

    summary   three sentences: row count, measure totals, grouping column
    insights  leader / trailer of the ranked groups, latest-vs-average change
    kpis      totals of the first three measures plus the primary average
    trends    primary measure summed per dimension value, top 8, descending
    table     preview rows (ranked groups, or raw records when ungrouped)

Column kinds are inferred per value, not per declared type: a column is a
measure as soon as one row's value survives the loose numeric parse, and a
dimension candidate as soon as one row holds an unparseable string. The same
column can land in both lists.

Nothing in this module raises. Empty or partial data produces an empty or
partial result, never an exception, so the output is always renderable.

Usage:
    result = analyze_records(parse_csv(text))
    print(result["summary"])
"""

import logging
import math
import numbers
import re
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Dict, List, Optional, Sequence, TypedDict

log = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_TWO_PLACES = Decimal("0.01")
# wide enough for any finite double quantized to cents
_DECIMAL_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)

_MAX_KPI_TOTALS = 3
_MAX_TRENDS = 8
_MAX_TABLE_ROWS = 6
_UNKNOWN_LABEL = "Unknown"

EMPTY_SUMMARY = "No rows detected in the supplied data."
EMPTY_INSIGHT = "Upload a CSV or JSON file with at least one row to generate an analysis."


class Kpi(TypedDict):
    label: str
    value: str


class TrendPoint(TypedDict):
    label: str
    value: float


class PreviewTable(TypedDict):
    headers: List[str]
    rows: List[List[Any]]


class AnalysisResult(TypedDict):
    summary: str
    insights: List[str]
    kpis: List[Kpi]
    trends: List[TrendPoint]
    table: PreviewTable


# ── Value helpers ──────────────────────────────────────────────────────────────

def to_number(value: Any) -> Optional[float]:
    """
    Loose numeric parse.

    Finite numbers pass through unchanged. Anything else is stringified,
    stripped of every character except digits, '.' and '-', and parsed as
    a float. Returns None when nothing finite comes out ("", "1-2", "..").
    Booleans are not numbers here.
    """
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        try:
            if math.isfinite(value):
                return value
        except OverflowError:
            return None
    if value is None or isinstance(value, bool):
        return None

    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return None
    try:
        parsed = float(cleaned)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP, context=_DECIMAL_CONTEXT)


def round2(value: float) -> float:
    """Round to 2 decimals, ties away from zero, on the exact binary value."""
    value = float(value)
    if not math.isfinite(value):
        return value
    return float(_quantize(Decimal(value)))


def format_number(value: float) -> str:
    """en-US display format: comma grouping, at most 2 fraction digits."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"

    # shortest round-trip digits first, so 1.005 displays as 1.01
    text = format(_quantize(Decimal(repr(value))), ",f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _plain_number(value: float) -> str:
    # 12.0 -> "12", 0.30 -> "0.3"
    value = float(value)
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _label(value: Any) -> str:
    if value is None:
        return _UNKNOWN_LABEL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value):
        return _plain_number(value)
    return str(value)


def describe_change(metric: str, value: float, average: float) -> str:
    """Phrase the latest value of a metric relative to its average."""
    if average == 0:
        return f"{metric} stayed flat."

    delta = value - average
    percentage = delta / average * 100
    if abs(percentage) < 0.5:
        rounded = str(_quantize(Decimal(percentage)))
    elif math.isfinite(percentage):
        rounded = str(math.floor(percentage + 0.5))
    else:
        rounded = _plain_number(percentage)

    if delta > 0:
        return f"{metric} is up {rounded}% vs. the rolling average."
    if delta < 0:
        return f"{metric} dipped {_plain_number(abs(float(rounded)))}% compared to the average."
    return f"{metric} is right on the average."


# ── Engine ─────────────────────────────────────────────────────────────────────

def _empty_result() -> AnalysisResult:
    return {
        "summary":  EMPTY_SUMMARY,
        "insights": [EMPTY_INSIGHT],
        "kpis":     [],
        "trends":   [],
        "table":    {"headers": [], "rows": []},
    }


def _entries(record: Any):
    return record.items() if isinstance(record, Mapping) else ()


def _get(record: Any, key: str) -> Any:
    return record.get(key) if isinstance(record, Mapping) else None


def classify_columns(records: Sequence[Any]):
    """
    Split column names into (numeric_fields, categorical_fields).

    Both lists keep first-seen order across all records. A key is numeric
    if any row's value parses; it is categorical if any row holds a string
    that does not parse. Membership in one does not exclude the other.
    """
    numeric_keys:     Dict[str, None] = {}
    categorical_keys: Dict[str, None] = {}

    for record in records:
        for key, value in _entries(record):
            if to_number(value) is not None:
                numeric_keys.setdefault(key, None)
            elif isinstance(value, str):
                categorical_keys.setdefault(key, None)

    return list(numeric_keys), list(categorical_keys)


def aggregate(records: Sequence[Any], fields: Sequence[str]) -> Dict[str, Dict[str, float]]:
    """Total and average per field, skipping values that do not parse."""
    stats: Dict[str, Dict[str, float]] = {}
    for field in fields:
        total = 0.0
        count = 0
        for record in records:
            number = to_number(_get(record, field))
            if number is not None:
                total += number
                count += 1
        stats[field] = {"total": total, "average": total / count if count else 0}
    return stats


def rank_groups(records: Sequence[Any], dimension: str, measure: str) -> List[TrendPoint]:
    """Sum the measure per dimension value; top groups first, ties keep input order."""
    grouped: Dict[str, float] = {}
    for record in records:
        bucket = _label(_get(record, dimension))
        number = to_number(_get(record, measure))
        grouped[bucket] = grouped.get(bucket, 0.0) + (number if number is not None else 0)

    ranked = sorted(grouped.items(), key=lambda item: item[1], reverse=True)
    return [{"label": label, "value": round2(value)} for label, value in ranked[:_MAX_TRENDS]]


def analyze_records(records: Sequence[Any]) -> AnalysisResult:
    """
    Analyze records with no prior schema knowledge.

    Args:
        records: Row mappings in input order. Values may be numbers or
                 strings; anything else is tolerated and mostly ignored.

    Returns:
        AnalysisResult dict made of plain strings, numbers and lists.
    """
    records = list(records) if records is not None else []
    if not records:
        log.debug("No records supplied; returning the empty result.")
        return _empty_result()

    numeric_fields, categorical_fields = classify_columns(records)
    dimension = categorical_fields[0] if categorical_fields else None
    primary   = numeric_fields[0] if numeric_fields else None
    stats     = aggregate(records, numeric_fields)

    log.debug(
        f"Classified {len(numeric_fields)} numeric / {len(categorical_fields)} categorical "
        f"column(s); dimension={dimension!r} primary={primary!r}"
    )

    # KPIs
    kpis: List[Kpi] = [
        {"label": f"Total {field}", "value": format_number(stats[field]["total"])}
        for field in numeric_fields[:_MAX_KPI_TOTALS]
    ]
    if primary is not None:
        kpis.append({
            "label": f"Average {primary}",
            "value": format_number(stats[primary]["average"]),
        })

    # Trends
    trends: List[TrendPoint] = []
    if dimension is not None and primary is not None:
        trends = rank_groups(records, dimension, primary)

    # Insights
    insights: List[str] = []
    if trends:
        best = trends[0]
        insights.append(f"{best['label']} leads on {primary} with {format_number(best['value'])}.")
        if len(trends) > 1:
            trailing = trends[-1]
            insights.append(f"{trailing['label']} trails with {format_number(trailing['value'])}.")

    if primary is not None:
        latest = to_number(_get(records[-1], primary))
        insights.append(describe_change(
            primary,
            latest if latest is not None else 0,
            stats[primary]["average"],
        ))

    # Summary
    if numeric_fields:
        measures = ", ".join(
            f"{field} (total {format_number(stats[field]['total'])})" for field in numeric_fields
        )
        measures_line = f"Key measures: {measures}."
    else:
        measures_line = "No numeric measures detected."

    summary = " ".join([
        f"{len(records)} rows processed.",
        measures_line,
        f"Primary grouping: {dimension}." if dimension is not None else "No categorical dimensions found.",
    ])

    # Preview table
    rows: List[List[Any]] = []
    if dimension is not None and primary is not None:
        headers = [dimension, primary]
        rows = [[point["label"], point["value"]] for point in trends[:_MAX_TABLE_ROWS]]
    else:
        headers = [dimension] if dimension is not None else numeric_fields[:2]
        for record in records[:_MAX_TABLE_ROWS]:
            row = []
            for header in headers:
                value = _get(record, header)
                row.append("" if value is None else value)
            rows.append(row)

    return {
        "summary":  summary,
        "insights": insights,
        "kpis":     kpis,
        "trends":   trends,
        "table":    {"headers": headers, "rows": rows},
    }
