"""
Logging setup for stl_snapshot.

Two output flavours share the same records:
- a console line for people watching a snapshot run
- a JSON line per record for log collectors

Pipeline stages are wrapped in ``log_timing`` so every snapshot leaves a
start/complete (or failure) trail with elapsed times, and ``LogContext``
stamps all records of one snapshot with the source they belong to.

Usage:
    from stl_snapshot.logging_config import setup_logging, get_logger

    setup_logging(level=logging.INFO, json_file="snapshot.log.json")
    logger = get_logger(__name__)
    logger.info("Framing mesh", extra={"n_triangles": 1024})
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar, Union

F = TypeVar('F', bound=Callable[..., Any])

PACKAGE_LOGGER = "stl_snapshot"

# Attributes every LogRecord carries; anything else came in through `extra`
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    'message', 'asctime', 'taskName',
}

_LEVEL_COLORS = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[35m',
}
_RESET = '\033[0m'


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to ``record`` beyond the standard LogRecord ones."""
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _short(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.3g}"
    if isinstance(value, (list, tuple)) and len(value) > 3:
        return f"[...{len(value)} items]"
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Warnings and errors (and debug records) also carry their source location.
    """

    def __init__(self, include_extra: bool = True):
        """Create a JSON formatter.

        Args:
            include_extra: Copy fields passed through `extra={}` into the
                output; values that are not JSON-serializable are stringified
        """
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a single JSON line.

        Args:
            record: Log record to format

        Returns:
            JSON string without a trailing newline
        """
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING or record.levelno <= logging.DEBUG:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if self.include_extra:
            entry.update({k: _jsonable(v) for k, v in record_extras(record).items()})
        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """``[HH:MM:SS] LEVEL    module: message [key=value, ...]``

    The ``stl_snapshot.`` prefix is dropped from logger names.
    """

    def __init__(self, use_colors: bool = True, show_extra: bool = True):
        """Create a console formatter.

        Args:
            use_colors: Wrap the level name in ANSI colors (disable for files)
            show_extra: Append `extra={}` fields as key=value pairs; floats are
                shortened to 3 significant digits, long sequences to a count
        """
        super().__init__()
        self.use_colors = use_colors
        self.show_extra = show_extra

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as one console line (plus traceback, if any).

        Args:
            record: Log record to format

        Returns:
            Formatted string
        """
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:8}"
        if self.use_colors and record.levelno in _LEVEL_COLORS:
            level = f"{_LEVEL_COLORS[record.levelno]}{level}{_RESET}"

        name = record.name
        prefix = PACKAGE_LOGGER + "."
        if name.startswith(prefix):
            name = name[len(prefix):]

        parts: List[str] = [f"[{stamp}] {level} {name}: {record.getMessage()}"]
        if self.show_extra:
            extras = record_extras(record)
            if extras:
                parts.append(" [" + ", ".join(f"{k}={_short(v)}" for k, v in extras.items()) + "]")
        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))
        return "".join(parts)


def setup_logging(
    level: int = logging.INFO,
    json_file: Optional[Union[str, Path]] = None,
    console: bool = True,
    use_colors: bool = True,
    root_logger: bool = False,
) -> logging.Logger:
    """Attach console and/or JSON-file handlers, replacing existing ones.

    Args:
        level: Minimum level for the logger and its handlers
        json_file: Write JSON lines to this file as well
        console: Write human-readable lines to stderr
        use_colors: ANSI colors on the console
        root_logger: Configure the root logger instead of the package logger

    Returns:
        The configured logger
    """
    logger = logging.getLogger("" if root_logger else PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handlers: List[logging.Handler] = []
    if console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(ConsoleFormatter(use_colors=use_colors))
        handlers.append(stream)
    if json_file:
        file_handler = logging.FileHandler(Path(json_file), encoding='utf-8')
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)

    if not root_logger:
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module.

    Args:
        name: Module name (typically ``__name__``)

    Returns:
        Logger instance; names under ``stl_snapshot.`` use the package handlers
    """
    return logging.getLogger(name)


def configure_default_logging(verbose: bool = False) -> logging.Logger:
    """Console logging at DEBUG when verbose, INFO otherwise."""
    return setup_logging(level=logging.DEBUG if verbose else logging.INFO)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    **extra_fields: Any
) -> Iterator[Dict[str, Any]]:
    """Log the start and the outcome of a pipeline stage.

    Fields put into the yielded dict end up on the completion record. A
    failing stage is logged at ERROR and the exception propagates.

    Example:
        with log_timing(logger, "Building mesh") as info:
            mesh = builder.build()
            info["n_vertices"] = mesh.n_vertices
    """
    info: Dict[str, Any] = {}
    fields = {"operation": operation, **extra_fields}
    started = time.perf_counter()
    logger.log(level, "Starting: %s", operation, extra={"event": "start", **fields})

    try:
        yield info
    except Exception as exc:
        elapsed = time.perf_counter() - started
        logger.error("Failed: %s (%.3fs) - %s", operation, elapsed, exc, extra={
            "event": "error", "elapsed_seconds": elapsed, "error": str(exc), **fields,
        })
        raise

    info["elapsed_seconds"] = time.perf_counter() - started
    logger.log(level, "Completed: %s (%.3fs)", operation, info["elapsed_seconds"],
               extra={"event": "complete", **fields, **info})


def timed(
    logger: Optional[logging.Logger] = None,
    level: int = logging.DEBUG,
    operation: Optional[str] = None,
) -> Callable[[F], F]:
    """Decorator form of log_timing; defaults to the function's module logger and name."""
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with log_timing(logger or logging.getLogger(func.__module__),
                            operation or func.__name__, level):
                return func(*args, **kwargs)
        return wrapper  # type: ignore
    return decorator


class _FieldsFilter(logging.Filter):
    def __init__(self, fields: Dict[str, Any]):
        super().__init__()
        self.fields = fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.fields.items():
            setattr(record, key, value)
        return True


class LogContext:
    """Stamps fields onto package log records while the context is active.

    Example:
        with LogContext(source="bracket.stl"):
            logger.info("Rendering")  # record carries source="bracket.stl"
    """

    _current: Optional['LogContext'] = None

    def __init__(self, **fields: Any):
        """Collect the fields to stamp.

        Args:
            **fields: Attribute names and values set on every package
                record logged while the context is active, e.g.
                ``source="bracket.stl"``
        """
        self.fields = fields
        self._previous: Optional['LogContext'] = None
        self._filter = _FieldsFilter(fields)

    def _targets(self) -> List[Union[logging.Logger, logging.Handler]]:
        # Logger filters only see records logged on that exact logger;
        # records from child modules reach the package handlers instead.
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        return [package_logger, *package_logger.handlers]

    def __enter__(self) -> 'LogContext':
        self._previous = LogContext._current
        LogContext._current = self
        for target in self._targets():
            target.addFilter(self._filter)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        for target in self._targets():
            target.removeFilter(self._filter)
        LogContext._current = self._previous

    @classmethod
    def current(cls) -> Optional['LogContext']:
        """Innermost active context, if any."""
        return cls._current
