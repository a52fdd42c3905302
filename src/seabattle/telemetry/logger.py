"""Logging helpers with optional OTLP log export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import TelemetryConfig

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s "
    "| trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
)

_LOGGERS: dict[str, logging.Logger] = {}
_CONSOLE_HANDLER: logging.Handler | None = None
_OTLP_HANDLER: logging.Handler | None = None


class _TraceContextFilter(logging.Filter):
    """Fill in trace/span placeholders when no span context is attached."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        if not hasattr(record, "otelTraceID"):
            record.otelTraceID = "-"
        if not hasattr(record, "otelSpanID"):
            record.otelSpanID = "-"
        return True


def get_logger(name: str = "seabattle") -> logging.Logger:
    logger = _LOGGERS.get(name)
    if logger is None:
        logger = logging.getLogger(name)
        _LOGGERS[name] = logger
    return logger


def init_console_logging(level: str = "WARNING") -> logging.Logger:
    """Send ``seabattle`` records to stderr at ``level``; safe to call repeatedly."""
    global _CONSOLE_HANDLER
    package_logger = get_logger("seabattle")
    package_logger.setLevel(level)
    if _CONSOLE_HANDLER is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(_TraceContextFilter())
        package_logger.addHandler(handler)
        _CONSOLE_HANDLER = handler
    _CONSOLE_HANDLER.setLevel(level)
    return package_logger


def init_logging(config: TelemetryConfig) -> logging.Logger:
    """Forward ``seabattle`` records to the OTLP log endpoint."""
    global _OTLP_HANDLER
    logger = get_logger(config.service_name)
    if _OTLP_HANDLER is not None or not config.otlp_logs_endpoint:
        return logger

    from opentelemetry._logs import set_logger_provider
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.sdk.resources import Resource

    provider = LoggerProvider(resource=Resource.create(config.resource()))
    exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
    provider.add_log_record_processor(BatchLogRecordProcessor(exporter))
    set_logger_provider(provider)

    handler = LoggingHandler(level=logging.getLevelName(config.log_level), logger_provider=provider)
    handler.addFilter(_TraceContextFilter())
    get_logger("seabattle").addHandler(handler)
    _OTLP_HANDLER = handler
    return logger
