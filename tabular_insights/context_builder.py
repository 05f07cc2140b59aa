"""
tabular_insights/context_builder.py - Builds the data context for narrative prompts.

The LLM never sees the raw upload. This module condenses the records and
the engine's AnalysisResult into a short text block: dataset shape, the
KPIs, the ranked groups, the deterministic insights and a few sample rows.

Output stays under ~6000 characters (~1500 tokens), leaving room for the
prompt and the model's write-up.

Usage:
    builder = ContextBuilder(records, result, dataset_name="sales_q3")
    context = builder.build_context()
    report  = reporter.write_report(result, context)
"""

import logging
from typing import Any, Dict, List, Sequence

import pandas as pd

from tabular_insights.analysis import AnalysisResult, format_number

log = logging.getLogger(__name__)

_CHAR_BUDGET = 6_000
_SAMPLE_ROWS = 5


class ContextBuilder:
    """
    Converts records plus their analysis into a concise text summary.

    Args:
        records:      Records the result was computed from.
        result:       Output of analyze_records() for those records.
        dataset_name: Human-readable name shown in the context header.
    """

    def __init__(
        self,
        records:      Sequence[Dict[str, Any]],
        result:       AnalysisResult,
        dataset_name: str = "dataset",
    ):
        self.records = list(records)
        self.result  = result
        self.name    = dataset_name

    def build_context(self) -> str:
        """
        Build the context string.

        Returns:
            Plain text string under _CHAR_BUDGET characters when the
            sample rows can be dropped to fit.
        """
        frame = self._frame()
        lines: List[str] = []

        lines.append(f"Dataset: '{self.name}'")
        lines.append(f"Shape: {len(self.records):,} rows × {len(frame.columns)} columns")
        lines.append(f"Columns: {', '.join(str(c) for c in frame.columns)}")
        lines.append(f"Summary: {self.result['summary']}")
        lines.append("")

        lines.append("=== KPIs ===")
        for kpi in self.result["kpis"]:
            lines.append(f"  {kpi['label']}: {kpi['value']}")
        lines.append("")

        if self.result["trends"]:
            headers = self.result["table"]["headers"]
            lines.append(f"=== Ranked groups ({' by '.join(reversed(headers))}) ===")
            for rank, point in enumerate(self.result["trends"], start=1):
                lines.append(f"  {rank}. {point['label']}: {format_number(point['value'])}")
            lines.append("")

        lines.append("=== Observations ===")
        lines.extend(f"  - {insight}" for insight in self.result["insights"])
        lines.append("")

        sample_header = f"=== Sample Rows (first {_SAMPLE_ROWS}) ==="
        lines.append(sample_header)
        if frame.empty:
            lines.append("  (no rows)")
        else:
            lines.append(frame.head(_SAMPLE_ROWS).to_string(max_cols=10, max_colwidth=40))
        lines.append("")

        full = "\n".join(lines)

        # Sample rows go first when over budget
        if len(full) > _CHAR_BUDGET:
            idx  = lines.index(sample_header)
            full = "\n".join(lines[:idx])
            log.debug(f"Context trimmed to {len(full)} chars; sample rows dropped.")

        return full

    # ── Private ────────────────────────────────────────────────────────────────

    def _frame(self) -> pd.DataFrame:
        rows = [r for r in self.records if isinstance(r, dict)]
        return pd.DataFrame.from_records(rows) if rows else pd.DataFrame()
