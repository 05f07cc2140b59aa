"""
tabular_insights/service.py - Request envelope around the analysis engine.

An analysis request carries the raw upload and how to decode it:

    {"content": "<csv or json text>", "fileType": "csv" | "json", "model": "balanced"}

and gets back either a 400 with a message, or

    {"result": AnalysisResult, "model": "<echoed>", "largeNarrative": "<text>"}

Decoding is the only step that can reject a request. Once records exist,
the engine always produces a result.

Usage:
    service  = AnalysisService()
    response = service.handle({"content": csv_text, "fileType": "csv"})
    if response["status"] == 200:
        print(response["body"]["result"]["summary"])
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from tabular_insights.analysis import analyze_records
from tabular_insights.csv_tokenizer import parse_csv
from tabular_insights.loader import detect_file_type, records_from_json
from tabular_insights.narrative import NarrativeWriter

log = logging.getLogger(__name__)

DEFAULT_MODEL = "balanced"


def _error(message: str) -> Dict[str, Any]:
    return {"status": 400, "body": {"message": message}}


class AnalysisService:
    """
    Decodes analysis requests, runs the engine and builds the envelope.

    Args:
        narrative_writer: Writer for the largeNarrative field. Defaults to a
                          NarrativeWriter keyed from ANTHROPIC_API_KEY, which
                          stays on the template path when the key is unset.

    Attributes:
        analysis_requests: Number of requests handled, including rejected ones.
    """

    def __init__(self, narrative_writer: Optional[NarrativeWriter] = None):
        self.narrative = narrative_writer or NarrativeWriter(api_key=os.getenv("ANTHROPIC_API_KEY"))
        self.analysis_requests = 0

    def handle(self, payload: Dict[str, Any], dataset_name: str = "upload") -> Dict[str, Any]:
        """
        Handle one analysis request.

        Args:
            payload: Dict with "content", optional "fileType" ("csv" default)
                     and optional "model".

        Returns:
            Dict with "status" (200 or 400) and "body".
        """
        self.analysis_requests += 1
        content = payload.get("content")
        model   = payload.get("model") or DEFAULT_MODEL

        if not content:
            log.info("Rejected analysis request: empty content.")
            return _error("No content detected.")

        if payload.get("fileType") == "json":
            try:
                records = records_from_json(content)
            except ValueError as exc:
                log.info(f"Rejected analysis request: invalid JSON ({exc}).")
                return _error("Invalid JSON.")
        else:
            records = parse_csv(content)

        result = analyze_records(records)
        log.info(
            f"Analysis #{self.analysis_requests}: {len(records):,} records, "
            f"{len(result['kpis'])} KPIs, {len(result['trends'])} trends (model={model})"
        )

        return {
            "status": 200,
            "body": {
                "result":         result,
                "model":          model,
                "largeNarrative": self.narrative.write(result, records, dataset_name),
            },
        }

    def analyze_file(self, filepath: str, model: str = DEFAULT_MODEL) -> Dict[str, Any]:
        """
        Run a request built from a .csv or .json file on disk.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        return self.handle(
            {
                "content":  path.read_text(encoding="utf-8-sig"),
                "fileType": detect_file_type(path.name),
                "model":    model,
            },
            dataset_name=path.stem,
        )


# ── Demo ──────────────────────────────────────────────────────────────────────

def demo():
    """
    End-to-end demo: CSV and JSON uploads through the service.

    Set ANTHROPIC_API_KEY to get a model-written narrative; without it the
    template narrative is used.
    """
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    csv_text = "\n".join([
        "region,units,total",
        "North,10,2500",
        "South,5,1300",
        "North,8,2000",
        'East,"1,200",900',
        "West,7,",
    ])
    json_text = json.dumps([
        {"product": "Widget", "price": "$12.50", "qty": 4},
        {"product": "Gadget", "price": "$8.00",  "qty": 9},
        {"product": "Widget", "price": "$11.75", "qty": 2},
    ])

    service = AnalysisService()

    print("Tabular Insights Demo")
    print("=" * 55)

    for label, payload in (
        ("CSV upload",   {"content": csv_text,  "fileType": "csv"}),
        ("JSON upload",  {"content": json_text, "fileType": "json", "model": "fast-lite"}),
        ("Broken JSON",  {"content": "[{",      "fileType": "json"}),
    ):
        response = service.handle(payload)
        print(f"\n📂 {label} -> HTTP {response['status']}")
        if response["status"] != 200:
            print(f"  ⚠️  {response['body']['message']}")
            continue

        result = response["body"]["result"]
        print(f"  {result['summary']}")
        for kpi in result["kpis"]:
            print(f"  📊 {kpi['label']}: {kpi['value']}")
        for insight in result["insights"]:
            print(f"  💡 {insight}")

    print(f"\n✅ {service.analysis_requests} requests handled")


if __name__ == "__main__":
    demo()
