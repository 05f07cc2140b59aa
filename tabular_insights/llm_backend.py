"""
tabular_insights/llm_backend.py - Writes analysis reports through the Anthropic API.

The reporter receives an AnalysisResult and the text context built from it,
asks the model for a short business write-up focused on the result's
ranked groups (or its headline measures when nothing was grouped), and
returns the report text.

Rate limits and 5xx responses are retried with capped, jittered
exponential delays. Other API errors surface immediately.

Usage:
    reporter = AnthropicReporter(api_key=os.getenv("ANTHROPIC_API_KEY"))
    context  = ContextBuilder(records, result).build_context()
    report   = reporter.write_report(result, context)
"""

import logging
import os
import random
import time
from typing import Any, Optional

import anthropic

from tabular_insights.analysis import AnalysisResult

log = logging.getLogger(__name__)

_MODEL      = "claude-haiku-4-5-20251001"
_ATTEMPTS   = 3
_FIRST_WAIT = 1.0   # seconds
_WAIT_CAP   = 30.0  # seconds

_SYSTEM_PROMPT = """\
You are a precise, concise data analyst writing for business readers.

The <analysis> block holds KPIs, ranked groups and observations that were
already computed from the user's upload. Guidelines:
  - Only use numbers that appear in the analysis block
  - Lead with the most important finding
  - Keep the report under 150 words, in two short paragraphs
  - Format numbers with commas (e.g. 1,234.56)
"""


def report_prompt(result: AnalysisResult, context: str) -> str:
    """User turn for one report: the analysis block plus what to focus on."""
    if result["trends"]:
        dimension, measure = result["table"]["headers"][:2]
        focus = (
            f"how {measure} splits across {dimension}, "
            f"from {result['trends'][0]['label']} down to {result['trends'][-1]['label']}"
        )
    else:
        focus = "the headline measures: " + ", ".join(k["label"] for k in result["kpis"])

    return (
        f"<analysis>\n{context}\n</analysis>\n\n"
        f"Write a short narrative report on this dataset. Focus on {focus}."
    )


def _retryable(exc: anthropic.APIStatusError) -> bool:
    return exc.status_code == 429 or exc.status_code >= 500


def _wait_before(attempt: int) -> float:
    """Delay before retry number `attempt` (1-based), jittered and capped."""
    return min(_FIRST_WAIT * 2 ** (attempt - 1) * random.uniform(1.0, 1.5), _WAIT_CAP)


class AnthropicReporter:
    """
    Report writer backed by the Anthropic Messages API.

    Args:
        api_key:    Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
        model:      Model that writes the report.
        max_tokens: Upper bound on report length in tokens.
        client:     Pre-built client (tests inject a mock here).

    Raises:
        ValueError: If no client is given and no API key is found.
    """

    def __init__(
        self,
        api_key:    Optional[str] = None,
        model:      str           = _MODEL,
        max_tokens: int           = 600,
        client:     Any           = None,
    ):
        if client is None:
            key = api_key or os.getenv("ANTHROPIC_API_KEY")
            if not key:
                raise ValueError("No Anthropic API key: set ANTHROPIC_API_KEY or pass api_key=.")
            client = anthropic.Anthropic(api_key=key)

        self.client     = client
        self.model      = model
        self.max_tokens = max_tokens

    def write_report(self, result: AnalysisResult, context: str) -> str:
        """
        Ask the model for a report on one analysis.

        Returns:
            Report text, stripped; "" when the model returned no text.

        Raises:
            anthropic.APIStatusError: For non-retryable API errors.
            RuntimeError:             When every attempt hit a retryable error.
        """
        prompt = report_prompt(result, context)

        for attempt in range(1, _ATTEMPTS + 1):
            try:
                response = self.client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=_SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}],
                )
            except anthropic.APIStatusError as exc:
                if not _retryable(exc):
                    log.error(f"Report request rejected ({exc.status_code}): {exc.message}")
                    raise
                if attempt == _ATTEMPTS:
                    raise RuntimeError(
                        f"Report request failed after {_ATTEMPTS} attempts ({exc.status_code})."
                    ) from exc
                wait = _wait_before(attempt)
                log.warning(f"Report request got {exc.status_code}; retry {attempt} in {wait:.1f}s.")
                time.sleep(wait)
                continue

            report = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            ).strip()
            log.debug(
                f"Report: {len(report)} chars, "
                f"{response.usage.input_tokens} in / {response.usage.output_tokens} out tokens"
            )
            return report
