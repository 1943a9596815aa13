"""Tests for structured logging, redaction and performance metrics."""

from __future__ import annotations

import io
import json
from pathlib import Path

from clinilex.logging import (
    DataRedactor,
    LogLevel,
    PerformanceMetrics,
    StructuredLogger,
    create_logger,
    preview,
)


class TestDataRedactor:
    def test_redacts_api_keys_and_bearer_tokens(self):
        redactor = DataRedactor()
        text = "key gsk_abcdefghijklmnop used with Bearer abcdef123456789"
        result = redactor.redact_string(text)
        assert "gsk_abcdefghijklmnop" not in result
        assert "abcdef123456789" not in result
        assert "[REDACTED]" in result

    def test_redacts_sensitive_fields(self):
        data = {
            "groq_api_key": "gsk_123",
            "Authorization": "Bearer xyz",
            "patient_name": "Jane Doe",
            "nested": {"dob": "1970-01-01", "backend": "hosted"},
            "safe_field": "this is safe",
        }
        result = DataRedactor().redact_dict(data)
        assert result["groq_api_key"] == "[REDACTED]"
        assert result["Authorization"] == "[REDACTED]"
        assert result["patient_name"] == "[REDACTED]"
        assert result["nested"] == {"dob": "[REDACTED]", "backend": "hosted"}
        assert result["safe_field"] == "this is safe"

    def test_path_keeps_filename(self):
        assert DataRedactor().redact_path(Path("/home/ana/logs/x.jsonl")) == "[REDACTED]/x.jsonl"

    def test_custom_pattern(self):
        redactor = DataRedactor()
        redactor.add_pattern(r"MRN-\d+")
        assert redactor.redact_string("chart MRN-55812") == "chart [REDACTED]"


def test_preview_flattens_and_truncates():
    assert preview("my\nhead   hurts") == "my head hurts"
    assert preview("x" * 40) == "x" * 30 + "..."
    assert preview(None) == ""


class TestStructuredLogger:
    def test_json_lines_with_context(self):
        buf = io.StringIO()
        logger = StructuredLogger("translate", session_id="s1", output_file=buf, enable_console=False)
        logger.info("Translating", backend="local", groq_api_key="gsk_secret")

        entry = json.loads(buf.getvalue().strip())
        assert entry["component"] == "translate"
        assert entry["session_id"] == "s1"
        assert entry["level"] == "info"
        assert entry["message"] == "Translating"
        assert entry["backend"] == "local"
        assert entry["groq_api_key"] == "[REDACTED]"

    def test_min_level_filters(self):
        buf = io.StringIO()
        logger = StructuredLogger(
            "capture", output_file=buf, enable_console=False, min_level=LogLevel.WARNING
        )
        logger.info("quiet")
        logger.warning("loud")
        lines = [json.loads(line) for line in buf.getvalue().splitlines()]
        assert [e["message"] for e in lines] == ["loud"]

    def test_console_goes_to_stderr(self, capsys):
        logger = StructuredLogger("session", enable_console=True)
        logger.error("boom")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert json.loads(captured.err)["message"] == "boom"

    def test_rotation(self, tmp_path):
        path = tmp_path / "translate.jsonl"
        logger = StructuredLogger("translate", output_file=path, enable_console=False)
        logger.file.max_bytes = 200
        for i in range(20):
            logger.info("entry", i=i)
        logger.close()
        assert path.exists()
        assert (tmp_path / "translate.1.jsonl").exists()


def test_create_logger_uses_env(monkeypatch, tmp_path):
    monkeypatch.setenv("CX_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("CX_LOG_LEVEL", "debug")
    logger = create_logger("capture", session_id="abc")
    logger.debug("hello")
    logger.close()

    log_file = tmp_path / "capture_abc.jsonl"
    entry = json.loads(log_file.read_text(encoding="utf-8").strip())
    assert entry["message"] == "hello"
    assert entry["level"] == "debug"
    assert logger.console_enabled is False


class TestPerformanceMetrics:
    def test_latency_stats(self):
        metrics = PerformanceMetrics(component="translate")
        for ms in (100.0, 200.0, 300.0):
            metrics.record_latency("translation_latency", ms)
        stats = metrics.get_stats("translation_latency")
        assert stats.count == 3
        assert stats.min == 100.0
        assert stats.max == 300.0
        assert stats.avg == 200.0

    def test_counters_and_timers(self):
        metrics = PerformanceMetrics()
        metrics.increment_counter("translations_success")
        metrics.increment_counter("translations_success")
        metrics.start_timer("correction_latency")
        assert metrics.end_timer("correction_latency") >= 0.0
        assert metrics.counters["translations_success"] == 2
        assert metrics.get_stats("correction_latency").count == 1
        assert metrics.get_stats("missing") is None
