import asyncio
import logging
from datetime import datetime

import pytest

from fit_steps import report
from fit_steps.config import AppConfig, ConfigError
from fit_steps.report import format_report, run_report, run_report_async, write_report
from tests.fakes import FakeSession, bucket


NOW = datetime(2024, 3, 14, 15, 30, 0)
WEEK = [5000, 6000, 7000, 6500, 5800, 6200, 6340]


class OrderedSession(FakeSession):
    """Routes aggregate payloads by window start so gather order does not matter."""

    def __init__(self, today, history, **kwargs):
        super().__init__(**kwargs)
        self.today = today
        self.history = history

    async def post(self, url, **kwargs):
        if "json" in kwargs:
            start = int(kwargs["json"]["startTimeMillis"])
            midnight = int(datetime(2024, 3, 14).timestamp() * 1000)
            self.aggregates = [self.today if start == midnight else self.history]
        return await super().post(url, **kwargs)


def test_format_report():
    assert format_report(8342, 6120) == " Steps: 8342 / 6120"


def test_write_report_overwrites(tmp_path):
    path = tmp_path / "steps.txt"
    path.write_text("old content that is much longer than the report\n", encoding="utf-8")
    write_report(path, " Steps: 1 / 2")
    assert path.read_bytes() == b" Steps: 1 / 2"


def test_run_report_writes_expected_line(tmp_path):
    out = tmp_path / "steps.txt"
    config = AppConfig("id", "secret", refresh_token="refresh", output_file=out)
    session = OrderedSession(
        today={"bucket": [bucket(8342)]},
        history={"bucket": [bucket(v) for v in WEEK]},
    )

    written = asyncio.run(run_report_async(config, session, NOW))

    assert written == out
    assert out.read_text(encoding="utf-8") == " Steps: 8342 / 6120"


def test_run_report_with_empty_history(tmp_path):
    out = tmp_path / "steps.txt"
    config = AppConfig("id", "secret", refresh_token="refresh", output_file=out)
    session = OrderedSession(today={"bucket": [bucket(42)]}, history={"bucket": []})

    asyncio.run(run_report_async(config, session, NOW))

    assert out.read_text(encoding="utf-8") == " Steps: 42 / 0"


def test_run_report_uses_default_path(tmp_path, monkeypatch):
    default = tmp_path / "step-count.txt"
    monkeypatch.chdir(tmp_path)
    config = AppConfig("id", "secret", refresh_token="refresh")
    session = OrderedSession(today={}, history={})

    asyncio.run(run_report_async(config, session, NOW))

    assert default.read_text(encoding="utf-8") == " Steps: 0 / 0"


def test_missing_refresh_token_writes_nothing(tmp_path):
    out = tmp_path / "steps.txt"
    config = AppConfig("id", "secret", output_file=out)
    session = FakeSession()

    with pytest.raises(ConfigError):
        asyncio.run(run_report_async(config, session, NOW))

    assert session.calls == []
    assert not out.exists()


def test_failed_query_leaves_previous_file_untouched(tmp_path):
    out = tmp_path / "steps.txt"
    out.write_text(" Steps: 1 / 1", encoding="utf-8")
    config = AppConfig("id", "secret", refresh_token="refresh", output_file=out)
    session = FakeSession(aggregates=[{}, {}], aggregate_status=503)

    with pytest.raises(Exception):
        asyncio.run(run_report_async(config, session, NOW))

    assert out.read_text(encoding="utf-8") == " Steps: 1 / 1"


def test_run_report_logs_and_swallows_errors(tmp_path, caplog):
    out = tmp_path / "steps.txt"
    config = AppConfig("id", "secret", output_file=out)

    with caplog.at_level(logging.ERROR, logger="fit_steps.report"):
        assert run_report(config) is False

    assert "Error fetching step count data" in caplog.text
    assert not out.exists()


def test_run_report_returns_true_on_success(tmp_path, monkeypatch):
    out = tmp_path / "steps.txt"
    config = AppConfig("id", "secret", refresh_token="refresh", output_file=out)

    async def fake_run(cfg, session=None, now=None):
        return write_report(cfg.output_path, format_report(3, 4))

    monkeypatch.setattr(report, "run_report_async", fake_run)

    assert run_report(config) is True
    assert out.read_text(encoding="utf-8") == " Steps: 3 / 4"
