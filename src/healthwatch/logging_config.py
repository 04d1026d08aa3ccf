import logging
import sys
import os
from opentelemetry import trace


class TraceIdFilter(logging.Filter):
    """Stamp records with the active span's `trace_id` and `span_id`.

    Outside a span (scheduled refresh startup, library logs) both are `-`,
    so probe and notification logs can be joined to their refresh trace.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        if ctx.is_valid:
            record.trace_id = trace.format_trace_id(ctx.trace_id)
            record.span_id = trace.format_span_id(ctx.span_id)
        else:
            record.trace_id = "-"
            record.span_id = "-"
        return True


class SafeFormatter(logging.Formatter):
    """Formatter that tolerates records which never passed TraceIdFilter."""

    def format(self, record):
        if not hasattr(record, "trace_id"):
            record.trace_id = "-"
        if not hasattr(record, "span_id"):
            record.span_id = "-"
        return super().format(record)


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [trace=%(trace_id)s span=%(span_id)s] - %(message)s"


def configure_logging(log_level: str | None = None):
    """
    Configure application-wide logging.
    Ensures trace_id/span_id always exist to avoid KeyError,
    even when logs originate before middleware or from external libraries.
    """
    log_level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SafeFormatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    # Attach handler + TraceIdFilter
    handler.addFilter(TraceIdFilter())
    root_logger.addHandler(handler)

    # Probe traffic is logged by our own services
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
