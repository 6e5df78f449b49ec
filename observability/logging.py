"""
Structured JSON logging for the recurrence engine.

Provides rule and query correlation IDs and call timing embedded in log
records, so expansion logs from a calendar back end can be traced back to
the rule that produced them.
"""

import json
import uuid
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Dict
from contextvars import ContextVar
import functools

# Context variables for log correlation
RULE_ID: ContextVar[Optional[str]] = ContextVar('rule_id', default=None)
QUERY_ID: ContextVar[Optional[str]] = ContextVar('query_id', default=None)

ENGINE_LOGGER_NAMES = ("recurrence", "observability")


class JSONFormatter(logging.Formatter):
    """JSON formatter with correlation IDs and structured fields."""

    def format(self, record):
        """Format log record as structured JSON."""
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if RULE_ID.get():
            log_entry['rule_id'] = RULE_ID.get()
        if QUERY_ID.get():
            log_entry['query_id'] = QUERY_ID.get()

        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        if hasattr(record, 'latency_ms'):
            log_entry['latency_ms'] = record.latency_ms

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)
            log_entry['exception_type'] = record.exc_info[0].__name__ if record.exc_info[0] else None

        return json.dumps(log_entry, default=str)


class StructuredLogger:
    """Logger adapter that attaches keyword arguments as structured fields."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log_with_extras(self, level: int, message: str, **extra_fields):
        self.logger.log(level, message, extra={'extra_fields': extra_fields})

    def debug(self, message: str, **extra_fields):
        self._log_with_extras(logging.DEBUG, message, **extra_fields)

    def info(self, message: str, **extra_fields):
        self._log_with_extras(logging.INFO, message, **extra_fields)

    def warning(self, message: str, **extra_fields):
        self._log_with_extras(logging.WARNING, message, **extra_fields)

    def error(self, message: str, **extra_fields):
        self._log_with_extras(logging.ERROR, message, **extra_fields)

    def exception(self, message: str, **extra_fields):
        self.logger.exception(message, extra={'extra_fields': extra_fields})

    def expansion_completed(self, pattern: str, interval: int, occurrences: int, duration_ms: float):
        """Log a finished occurrence query."""
        self.debug(
            "Occurrence expansion completed",
            pattern=pattern,
            interval=interval,
            occurrences=occurrences,
            latency_ms=duration_ms,
            event_type="expansion_completed"
        )

    def unrecognized_pattern(self, code: str):
        self.warning(
            f"Unrecognized recurrence pattern code: {code!r}",
            pattern_code=code,
            event_type="unrecognized_pattern"
        )


def configure_logging(settings=None) -> logging.Handler:
    """Install a single stream handler on the engine loggers.

    Uses the JSON formatter unless the settings turn it off. Calling it
    again replaces the previously installed handler.
    """
    if settings is None:
        from recurrence.config import get_settings
        settings = get_settings()

    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler._recurrence_handler = True

    for name in ENGINE_LOGGER_NAMES:
        engine_logger = logging.getLogger(name)
        engine_logger.setLevel(settings.log_level)
        for existing in engine_logger.handlers[:]:
            if getattr(existing, '_recurrence_handler', False):
                engine_logger.removeHandler(existing)
        engine_logger.addHandler(handler)
        engine_logger.propagate = False
    return handler


def set_rule_context(rule_id: str = None, query_id: str = None):
    """Set rule context for logging correlation."""
    if rule_id:
        RULE_ID.set(rule_id)
    if query_id:
        QUERY_ID.set(query_id)


def clear_rule_context():
    for ctx_var in [RULE_ID, QUERY_ID]:
        ctx_var.set(None)


def get_rule_context() -> Dict[str, Optional[str]]:
    return {
        'rule_id': RULE_ID.get(),
        'query_id': QUERY_ID.get(),
    }


def generate_query_id() -> str:
    """Generate unique query ID."""
    return f"qry-{uuid.uuid4().hex[:8]}"


def log_function_call(logger: StructuredLogger = None, level: int = logging.DEBUG):
    """Decorator to log function calls with timing."""
    def decorator(func):
        func_logger = logger or StructuredLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            func_name = func.__name__

            func_logger._log_with_extras(
                level, f"Function {func_name} started",
                function=func_name,
                args_count=len(args),
                kwargs_keys=list(kwargs.keys())
            )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                func_logger._log_with_extras(
                    logging.ERROR, f"Function {func_name} failed: {e}",
                    function=func_name,
                    latency_ms=duration_ms,
                    success=False,
                    exception_type=e.__class__.__name__
                )
                raise

            duration_ms = (time.time() - start_time) * 1000
            func_logger._log_with_extras(
                level, f"Function {func_name} completed successfully",
                function=func_name,
                latency_ms=duration_ms,
                success=True
            )
            return result

        return wrapper

    return decorator


engine_logger = StructuredLogger("recurrence.engine")
