"""Tests for structured logging with trace propagation."""

from __future__ import annotations

import io
import json

import pytest
from pydantic import ValidationError

from feargreed.core.logging import LogConfig, configure_logging, current_trace_id, get_logger, log_context, logger


def _read_records(stream: io.StringIO) -> list[dict[str, object]]:
    stream.seek(0)
    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


@pytest.fixture
def buffer():
    stream = io.StringIO()
    configure_logging("DEBUG", console_stream=stream)
    yield stream
    configure_logging("WARNING")


def test_context_fields_are_promoted(buffer: io.StringIO) -> None:
    with log_context(trace_id="trace-123", job="daily_ingest", record_date="2024-03-01"):
        logger.bind(error_code="STORE_ERROR").error("Saving today's index failed: {}", "disk full")

    records = _read_records(buffer)
    assert len(records) == 1
    record = records[0]
    assert record["message"] == "Saving today's index failed: disk full"
    assert record["level"] == "ERROR"
    assert record["trace_id"] == "trace-123"
    assert record["job"] == "daily_ingest"
    assert record["error_code"] == "STORE_ERROR"
    assert record["context"]["record_date"] == "2024-03-01"


def test_trace_id_shared_within_context(buffer: io.StringIO) -> None:
    with log_context(job="history_backfill") as trace_id:
        logger.info("first event")
        logger.info("second event")
        assert current_trace_id() == trace_id

    logger.info("outside context")

    records = _read_records(buffer)
    assert len(records) == 3
    assert records[0]["trace_id"] == records[1]["trace_id"] == trace_id
    assert records[2]["trace_id"] != trace_id
    assert records[2]["job"] is None


def test_level_filters_records() -> None:
    stream = io.StringIO()
    configure_logging("WARNING", console_stream=stream)
    try:
        logger.info("hidden")
        logger.warning("shown")
    finally:
        configure_logging("WARNING")

    records = _read_records(stream)
    assert [record["message"] for record in records] == ["shown"]


def test_named_logger_carries_name(buffer: io.StringIO) -> None:
    get_logger("feargreed.tests").debug("named")

    records = _read_records(buffer)
    assert records[0]["context"]["logger_name"] == "feargreed.tests"


def test_file_sink_writes_json_lines(tmp_path) -> None:
    path = tmp_path / "logs" / "feargreed.jsonl"
    configure_logging("INFO", console_output=False, file_output=True, file_path=str(path))
    try:
        logger.info("persisted")
    finally:
        configure_logging("WARNING")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[0])["message"] == "persisted"


class TestLogConfig:
    def test_level_is_normalised(self) -> None:
        assert LogConfig(level=" debug ").level == "DEBUG"

    def test_unknown_level_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogConfig(level="verbose")

    def test_file_output_requires_path(self) -> None:
        with pytest.raises(ValidationError):
            LogConfig(file_output=True)

    def test_extra_is_not_shared_between_instances(self) -> None:
        first = LogConfig()
        first.extra["service"] = "feargreed"

        assert LogConfig().extra == {}
