"""
Structured logging configuration for the study builder.

Supports both human-readable (development) and JSON (staging/production) formats.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict


# LogRecord attributes that are not "extra" fields.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
})


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.
    
    One JSON object per line, with LogContext fields and any ``extra``
    fields merged in at the top level.
    """
    
    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        if record.pathname:
            log_data["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        log_data.update(LogContext.current())
        
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value
        
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""
    
    def __init__(self):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = LogContext.current()
        if context:
            fields = " ".join(f"{k}={v}" for k, v in context.items())
            line = f"{line} | {fields}"
        return line


def configure_logging(
    level: str = "INFO",
    format_type: str = "text",
) -> None:
    """
    Configure application logging.
    
    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "json" for structured, "text" for human-readable
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    
    # Replace only handlers installed by a previous call
    for handler in list(root_logger.handlers):
        if getattr(handler, "_studybuilder", False):
            root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler(sys.stdout)
    handler._studybuilder = True
    
    if format_type.lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())
    
    root_logger.addHandler(handler)
    
    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    
    Args:
        name: Logger name, typically __name__
    """
    return logging.getLogger(name)


class LogContext:
    """
    Context manager for adding fields to log records.
    
    Usage:
        with LogContext(draft_key="draft-42", template_id="customer-satisfaction"):
            logger.info("Applying template")  # JSON output includes both fields
    """
    
    _context: Dict[str, Any] = {}
    
    def __init__(self, **kwargs):
        self._fields = kwargs
        self._old_values: Dict[str, Any] = {}
    
    @classmethod
    def current(cls) -> Dict[str, Any]:
        """Snapshot of the fields currently in scope."""
        return dict(cls._context)
    
    def __enter__(self):
        for key, value in self._fields.items():
            self._old_values[key] = LogContext._context.get(key)
            LogContext._context[key] = value
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        for key, old_value in self._old_values.items():
            if old_value is None:
                LogContext._context.pop(key, None)
            else:
                LogContext._context[key] = old_value
