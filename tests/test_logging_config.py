"""Tests for structured logging and billing run context."""

import json
import logging
import sys
import time

import pytest

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import (
    BillingRunContext,
    generate_run_id,
    get_context_dict,
    get_office_id,
    get_run_id,
)
from src.logging_config.performance import PerformanceTimer, log_performance
from src.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    billing_fields,
    configure_logging,
)


def _record(msg="test", level=logging.INFO, lineno=1, exc_info=None):
    return logging.LogRecord(
        name="test", level=level, pathname="test.py",
        lineno=lineno, msg=msg, args=(), exc_info=exc_info,
    )


class TestLoggingConfig:
    """Tests for logging configuration dataclasses."""

    def test_default_config_values(self):
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.JSON
        assert config.include_caller is True
        assert config.slow_threshold_ms == 500.0
        assert config.service_name == "lune-billing"

    def test_custom_config(self):
        config = LoggingConfig(
            level=LogLevel.DEBUG,
            format=LogFormat.CONSOLE,
            slow_threshold_ms=50.0,
            service_name="test",
        )
        assert config.level == LogLevel.DEBUG
        assert config.format == LogFormat.CONSOLE
        assert config.slow_threshold_ms == 50.0

    def test_log_format_enum_values(self):
        assert LogFormat.JSON.value == "json"
        assert LogFormat.CONSOLE.value == "console"


class TestBillingRunContext:
    """Tests for run-scoped context management."""

    def test_generate_run_id_unique(self):
        ids = {generate_run_id() for _ in range(100)}
        assert len(ids) == 100

    def test_context_sets_run_and_office(self):
        with BillingRunContext(run_id="run-1", office_id="office-7"):
            assert get_run_id() == "run-1"
            assert get_office_id() == "office-7"
        assert get_run_id() == ""
        assert get_office_id() == ""

    def test_auto_generates_run_id(self):
        with BillingRunContext() as ctx:
            assert ctx.run_id != ""
            assert get_run_id() == ctx.run_id

    def test_context_dict_empty_outside(self):
        assert get_context_dict() == {}

    def test_office_omitted_when_blank(self):
        with BillingRunContext(run_id="r1"):
            ctx = get_context_dict()
            assert ctx == {"run_id": "r1"}

    def test_bind_extra_context(self):
        with BillingRunContext(run_id="r1") as ctx:
            ctx.bind(period="03/2025")
            assert get_context_dict()["period"] == "03/2025"
        assert get_context_dict() == {}

    def test_nested_contexts_restore_outer(self):
        with BillingRunContext(run_id="outer"):
            with BillingRunContext(run_id="inner"):
                assert get_run_id() == "inner"
            assert get_run_id() == "outer"

    def test_elapsed_ms(self):
        with BillingRunContext() as ctx:
            time.sleep(0.01)
            assert ctx.elapsed_ms >= 10


class TestStructuredFormatter:
    """Tests for JSON structured log formatting."""

    def test_formats_as_json(self):
        parsed = json.loads(StructuredFormatter().format(_record("hello world")))
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert parsed["service"] == "lune-billing"
        assert "timestamp" in parsed

    def test_includes_caller_info(self):
        parsed = json.loads(StructuredFormatter(include_caller=True).format(_record(lineno=42)))
        assert parsed["line"] == 42
        assert "function" in parsed

    def test_excludes_caller_when_disabled(self):
        parsed = json.loads(StructuredFormatter(include_caller=False).format(_record()))
        assert "line" not in parsed

    def test_includes_run_context(self):
        with BillingRunContext(run_id="ctx-test", office_id="9"):
            parsed = json.loads(StructuredFormatter().format(_record()))
        assert parsed["run_id"] == "ctx-test"
        assert parsed["office_id"] == "9"

    def test_formats_exception(self):
        try:
            raise ValueError("test error")
        except ValueError:
            record = _record("failed", logging.ERROR, exc_info=sys.exc_info())
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["exception"]["type"] == "ValueError"
        assert "test error" in parsed["exception"]["message"]

    def test_includes_extra_fields(self):
        record = _record()
        record.duration_ms = 42.5
        record.invoice_number = "INV-2503000001"
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["duration_ms"] == 42.5
        assert parsed["invoice_number"] == "INV-2503000001"


class TestConsoleFormatter:
    """Tests for colored console log formatting."""

    def test_formats_readable_output(self):
        output = ConsoleFormatter().format(_record("hello", logging.WARNING))
        assert "hello" in output
        assert "WARNING" in output

    def test_includes_context_info(self):
        with BillingRunContext(run_id="abc"):
            output = ConsoleFormatter().format(_record())
        assert "run_id=abc" in output

    def test_has_color_codes(self):
        output = ConsoleFormatter().format(_record("error", logging.ERROR))
        assert "\033[31m" in output

    def test_includes_billing_extras(self):
        record = _record()
        record.device_id = "LUNE-001"
        with BillingRunContext(run_id="abc"):
            output = ConsoleFormatter().format(record)
        assert output.endswith("[run_id=abc, device_id=LUNE-001]")

    def test_billing_fields_without_context(self):
        record = _record()
        record.record_count = 3
        assert billing_fields(record) == {"record_count": 3}
        assert billing_fields(_record()) == {}


class TestConfigureLogging:
    """Tests for the configure_logging setup function."""

    def test_configures_root_logger(self):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ConsoleFormatter)

    def test_json_format(self):
        configure_logging(LoggingConfig(format=LogFormat.JSON))
        assert isinstance(logging.getLogger().handlers[0].formatter, StructuredFormatter)

    def test_sets_log_level(self):
        configure_logging(LoggingConfig(level=LogLevel.DEBUG))
        assert logging.getLogger().level == logging.DEBUG

    def test_env_var_override_level(self, monkeypatch):
        monkeypatch.setenv("LUNE_LOG_LEVEL", "DEBUG")
        configure_logging(LoggingConfig(level=LogLevel.ERROR))
        assert logging.getLogger().level == logging.DEBUG

    def test_env_var_override_format(self, monkeypatch):
        monkeypatch.setenv("LUNE_LOG_FORMAT", "CONSOLE")
        configure_logging(LoggingConfig(format=LogFormat.JSON))
        assert isinstance(logging.getLogger().handlers[0].formatter, ConsoleFormatter)

    def test_invalid_env_var_ignored(self, monkeypatch):
        monkeypatch.setenv("LUNE_LOG_LEVEL", "LOUD")
        configure_logging(LoggingConfig(level=LogLevel.WARNING))
        assert logging.getLogger().level == logging.WARNING


class TestPerformanceLogging:
    """Tests for performance timing decorator and context manager."""

    def test_log_performance_returns_result(self):
        @log_performance(threshold_ms=10000)
        def fast_func():
            return 42

        assert fast_func() == 42

    def test_log_performance_preserves_name(self):
        @log_performance()
        def my_function():
            """My docstring."""

        assert my_function.__name__ == "my_function"
        assert my_function.__doc__ == "My docstring."

    def test_log_performance_with_exception(self, caplog):
        @log_performance(threshold_ms=10000)
        def failing_func():
            raise ValueError("test error")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ValueError, match="test error"):
                failing_func()
        assert any("failed after" in r.getMessage() for r in caplog.records)

    def test_slow_call_logged_as_warning(self, caplog):
        @log_performance(threshold_ms=0)
        def slow_func():
            return None

        with caplog.at_level(logging.WARNING):
            slow_func()
        assert any("Slow operation" in r.getMessage() for r in caplog.records)

    def test_performance_timer_records_duration(self):
        with PerformanceTimer("load", threshold_ms=10000) as timer:
            time.sleep(0.01)
        assert timer.duration_ms >= 10

    def test_performance_timer_with_exception(self):
        with pytest.raises(ValueError):
            with PerformanceTimer("failing_op") as timer:
                raise ValueError("oops")
        assert timer.duration_ms >= 0
