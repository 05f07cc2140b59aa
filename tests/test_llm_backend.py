"""
Tests for the Anthropic report writer, with the HTTP client mocked out.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from tabular_insights.analysis import analyze_records
from tabular_insights.csv_tokenizer import parse_csv
from tabular_insights.llm_backend import AnthropicReporter, report_prompt

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")

SAMPLE_CSV = """region,units,total
North,10,2500
South,5,1300
North,8,2000"""


def _response(text):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=120, output_tokens=30),
    )


def _status_error(cls, status):
    return cls(
        message=f"status {status}",
        response=httpx.Response(status, request=_REQUEST),
        body=None,
    )


@pytest.fixture
def result():
    return analyze_records(parse_csv(SAMPLE_CSV))


@pytest.fixture
def reporter(monkeypatch):
    monkeypatch.setattr("tabular_insights.llm_backend.time.sleep", lambda seconds: None)
    return AnthropicReporter(client=MagicMock())


class TestReportPrompt:
    """The user turn is shaped by the analysis result."""

    def test_grouped_result_focuses_on_ranking(self, result):
        prompt = report_prompt(result, "Shape: 3 rows")
        assert prompt.startswith("<analysis>\nShape: 3 rows\n</analysis>")
        assert "how units splits across region, from North down to South" in prompt

    def test_ungrouped_result_focuses_on_kpis(self):
        result = analyze_records([{"a": 1, "b": 2}])
        prompt = report_prompt(result, "ctx")
        assert "the headline measures: Total a, Total b, Average a" in prompt


class TestAnthropicReporter:
    """Request shape and retry behaviour."""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError):
            AnthropicReporter()

    def test_api_key_builds_client(self):
        reporter = AnthropicReporter(api_key="test-key")
        assert isinstance(reporter.client, anthropic.Anthropic)

    def test_write_report(self, reporter, result):
        reporter.client.messages.create.return_value = _response("  North carried the quarter.\n")

        report = reporter.write_report(result, "Shape: 3 rows")

        assert report == "North carried the quarter."
        kwargs = reporter.client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": report_prompt(result, "Shape: 3 rows")}]
        assert "<analysis> block" in kwargs["system"]

    def test_retries_rate_limit(self, reporter, result):
        reporter.client.messages.create.side_effect = [
            _status_error(anthropic.RateLimitError, 429),
            _response("recovered"),
        ]
        assert reporter.write_report(result, "ctx") == "recovered"
        assert reporter.client.messages.create.call_count == 2

    def test_server_errors_exhaust_attempts(self, reporter, result):
        reporter.client.messages.create.side_effect = _status_error(anthropic.InternalServerError, 500)
        with pytest.raises(RuntimeError):
            reporter.write_report(result, "ctx")
        assert reporter.client.messages.create.call_count == 3

    def test_client_errors_are_not_retried(self, reporter, result):
        reporter.client.messages.create.side_effect = _status_error(anthropic.BadRequestError, 400)
        with pytest.raises(anthropic.BadRequestError):
            reporter.write_report(result, "ctx")
        assert reporter.client.messages.create.call_count == 1
