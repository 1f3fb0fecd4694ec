"""Structured Logging & Billing Run Context.

Provides structured JSON logging, run ID propagation,
and timing for the Lune billing engine.
"""

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import BillingRunContext, generate_run_id
from src.logging_config.performance import PerformanceTimer, log_performance
from src.logging_config.setup import configure_logging

__all__ = [
    "BillingRunContext",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PerformanceTimer",
    "configure_logging",
    "generate_run_id",
    "log_performance",
]
