"""Logging Setup.

Configures the root logger for billing runs. Every line carries the
bound run context (run id, office id) and whichever billing fields the
call site passed through ``extra``.
"""

import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import get_context_dict

# Record attributes set through ``extra=`` by the billing engine
EXTRA_FIELDS = ("duration_ms", "invoice_number", "record_count", "device_id")


def billing_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Run context followed by the billing extras present on ``record``."""
    fields = get_context_dict()
    for key in EXTRA_FIELDS:
        if hasattr(record, key):
            fields[key] = getattr(record, key)
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, for collection by log shippers."""

    def __init__(self, service_name: str = "lune-billing", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_caller:
            entry.update(module=record.module, function=record.funcName, line=record.lineno)

        entry.update(billing_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Short colored lines for running the CLI by hand."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        clock = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        line = (
            f"{color}{clock} {record.levelname:8s}{self.RESET} "
            f"{record.name}: {record.getMessage()}"
        )

        fields = billing_fields(record)
        if fields:
            line += " [" + ", ".join(f"{k}={v}" for k, v in fields.items()) + "]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _apply_env(config: LoggingConfig) -> LoggingConfig:
    """LUNE_LOG_LEVEL and LUNE_LOG_FORMAT override the given config."""
    env_level = os.environ.get("LUNE_LOG_LEVEL", "").upper()
    if env_level in LogLevel.__members__:
        config = replace(config, level=LogLevel(env_level))

    env_format = os.environ.get("LUNE_LOG_FORMAT", "").lower()
    if env_format in [f.value for f in LogFormat]:
        config = replace(config, format=LogFormat(env_format))
    return config


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Install a single stderr handler on the root logger.

    Stdout is left to the invoice output of the command-line tools.

    Args:
        config: Logging configuration. Uses defaults if not provided.
    """
    config = _apply_env(config or DEFAULT_LOGGING_CONFIG)

    if config.format == LogFormat.JSON:
        formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.value))
