"""
tabular_insights/narrative.py - Long-form narrative that accompanies a result.

Two paths:
    Template  the summary followed by a fixed two-stage write-up
              (creative pass, then analyst review) and a follow-up offer.
              Deterministic, free, always available.
    LLM       the summary followed by a short report written by the
              Anthropic API from the analysis context. Used only when a
              key is configured; any failure falls back to the template.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from tabular_insights.analysis import AnalysisResult
from tabular_insights.context_builder import ContextBuilder
from tabular_insights.llm_backend import AnthropicReporter

log = logging.getLogger(__name__)


def build_long_response(core: str) -> str:
    """Wrap a summary in the standard two-stage narrative."""
    return "".join([
        core,
        "\n\n",
        "To keep the conversation productive, I chained a creative ideation pass with a pragmatic review stage.",
        " The creative model outlined possibilities, while the analyst model trimmed them to the essentials.",
        "\n\n",
        "If you need to go deeper, ask for a follow-up report and I can expand with additional structured tables or timeline breakdowns.",
    ])


class NarrativeWriter:
    """
    Produces the narrative text for an AnalysisResult.

    Args:
        api_key:  Anthropic API key. Without a key (and without a reporter)
                  the writer stays on the template path.
        reporter: Any object with write_report(result, context), such as
                  AnthropicReporter. Takes precedence over api_key.
    """

    def __init__(self, api_key: Optional[str] = None, reporter: Any = None):
        self._llm: Any = reporter

        if self._llm is None and api_key:
            self._llm = AnthropicReporter(api_key=api_key)
            log.info("Anthropic reporter ready, narratives will be model-written.")
        elif self._llm is None:
            log.info("No API key, template narratives only.")

    @property
    def uses_llm(self) -> bool:
        return self._llm is not None

    def write(
        self,
        result:       AnalysisResult,
        records:      Sequence[Dict[str, Any]] = (),
        dataset_name: str = "dataset",
    ) -> str:
        """Return the narrative for a result; never raises on LLM failure."""
        if self._llm is None or not result["kpis"]:
            return build_long_response(result["summary"])

        try:
            context = ContextBuilder(records, result, dataset_name=dataset_name).build_context()
            report  = self._llm.write_report(result, context)
        except Exception as exc:
            log.warning(f"LLM narrative failed: {exc}. Falling back to template.")
            return build_long_response(result["summary"])

        if not report:
            return build_long_response(result["summary"])
        return f"{result['summary']}\n\n{report}"
