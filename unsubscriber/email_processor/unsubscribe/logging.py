"""
Structured logging for the unsubscribe pipeline.

Records are emitted as JSON objects carrying the component name, sticky
context and per-call extras. Unsubscribe URLs routinely embed tokens and
the subscriber's address, so every message and value is masked first.
"""

import json
import logging
import re
import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOGGER_NAMESPACE = "unsubscribe"


class SensitiveDataFilter:
    """Mask credentials, link tokens and subscriber addresses."""

    SENSITIVE_KEYS = frozenset({'password', 'token', 'api_key', 'key', 'secret'})

    # Query parameters / key=value pairs whose value is never logged
    SECRET_PARAM_PATTERN = re.compile(
        r'\b(token|password|api_key|key|secret|sig|signature|auth)(["\']?\s*[:=]\s*["\']?)[^"\'\s&]+',
        re.IGNORECASE
    )
    # Subscriber address carried in links, e.g. ?email=me%40home.test
    EMAIL_PARAM_PATTERN = re.compile(r'\b(e?mail|recipient)=[^&\s"\']+', re.IGNORECASE)

    def filter_message(self, message: str) -> str:
        masked = self.SECRET_PARAM_PATTERN.sub(lambda m: f"{m.group(1)}=***", message)
        return self.EMAIL_PARAM_PATTERN.sub(lambda m: f"{m.group(1)}=***", masked)

    def filter_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self.filter_message(value)
        if isinstance(value, dict):
            return self.filter_dict(value)
        return value

    def filter_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: '***' if str(key).lower() in self.SENSITIVE_KEYS else self.filter_value(value)
            for key, value in data.items()
        }


class UnsubscribeLogger:
    """JSON logger for one pipeline component (extractor, classifier, executor...)."""

    def __init__(self, component: str):
        self.component = component
        self.logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{component}")
        self.context: Dict[str, Any] = {}
        # Scoped context is per thread; one logger serves concurrent calls
        self._scoped = threading.local()
        self.filter = SensitiveDataFilter()
        self.operation_stats = defaultdict(lambda: {'total': 0, 'success': 0, 'failure': 0})

    def add_context(self, key: str, value: Any) -> None:
        """Attach a value to every later record of this logger."""
        self.context[key] = value

    def current_context(self) -> Dict[str, Any]:
        """Sticky context merged with the calling thread's scoped context."""
        return {**self.context, **getattr(self._scoped, 'context', {})}

    def _record(self, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'component': self.component,
            'message': self.filter.filter_message(message),
            'context': self.filter.filter_dict(self.current_context()),
        }
        if extra:
            record['extra'] = self.filter.filter_dict(extra)
        return record

    def _emit(self, level: int, record: Dict[str, Any], exc_info: bool = False):
        self.logger.log(level, json.dumps(record, default=str), exc_info=exc_info)

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]] = None):
        if self.logger.isEnabledFor(level):
            self._emit(level, self._record(message, extra))

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log(logging.ERROR, message, extra)

    @contextmanager
    def time_operation(self, operation_name: str):
        """Log start and outcome of a block with its duration; errors propagate."""
        started = time.perf_counter()

        def outcome(status: str, **fields) -> Dict[str, Any]:
            return dict(operation=operation_name, status=status,
                        duration_seconds=round(time.perf_counter() - started, 3), **fields)

        self.debug(f"Starting {operation_name}", {'operation': operation_name})
        try:
            yield
        except Exception as e:
            self.error(f"Operation {operation_name} failed", outcome('failure', error=str(e)))
            raise
        self.debug(f"Operation {operation_name} completed", outcome('success'))

    def log_exception(self, exception: Exception, extra: Optional[Dict[str, Any]] = None):
        """Log an exception, including the context of UnsubscribeError subclasses."""
        record = self._record(f"Exception occurred: {exception}", extra)
        record['exception'] = {'type': type(exception).__name__, 'message': str(exception)}
        context = getattr(exception, 'context', None)
        if context:
            record['exception']['context'] = self.filter.filter_dict(context)
        self._emit(logging.ERROR, record, exc_info=True)

    @contextmanager
    def scoped_context(self, context: Dict[str, Any]):
        """Context that applies only inside the block, on the calling thread."""
        saved = getattr(self._scoped, 'context', {})
        self._scoped.context = {**saved, **context}
        try:
            yield
        finally:
            self._scoped.context = saved

    def log_operation_count(self, operation: str, success: bool):
        stats = self.operation_stats[operation]
        stats['total'] += 1
        stats['success' if success else 'failure'] += 1

    def get_operation_stats(self) -> Dict[str, Dict[str, int]]:
        return {operation: dict(stats) for operation, stats in self.operation_stats.items()}


def configure_unsubscribe_logging(
    level: str = "INFO",
    format: str = "json",
    output: str = "console",
    filename: Optional[str] = None
) -> logging.Logger:
    """Install handlers on the unsubscribe logger namespace.

    Args:
        level: Level name; unknown names fall back to INFO
        format: "json" emits records as-is, anything else prefixes time and level
        output: "console", "file" or "both"
        filename: Log file used when output includes "file"
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    if format == "json":
        formatter = logging.Formatter('%(message)s')
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    handlers = []
    if output in ("console", "both"):
        handlers.append(logging.StreamHandler())
    if output in ("file", "both") and filename:
        handlers.append(logging.FileHandler(filename))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
