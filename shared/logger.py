"""
elfshrink Structured Logger
============================

Provides :class:`ShrinkLogger`, a logging facade that emits human-friendly
Rich console output on stderr and, optionally, plain or JSON-lines records
to a rotating log file.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Rich theme consistent with ShrinkConsole colour palette
# ---------------------------------------------------------------------------
_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
        "log.level.critical": "bold white on red",
    }
)


# ========================== JSON Formatter =================================


class _JSONFormatter(logging.Formatter):
    """Emit each log record as a single-line JSON object.

    Output fields::

        {
          "timestamp": "...",
          "level": "INFO",
          "logger": "elfshrink.engine",
          "message": "...",
          "tool_name": "engine",
          "operation": "/usr/bin/true",
          "extra": { ... },
          "exc_info": "..."
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for attr in ("tool_name", "operation"):
            val = getattr(record, attr, None)
            if val is not None:
                entry[attr] = val

        extra = getattr(record, "shrink_extra", None)
        if extra is not None:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


# ========================== Rich Console Handler ===========================


class _ColorConsoleHandler(RichHandler):
    """Thin wrapper over :class:`rich.logging.RichHandler` applying the
    elfshrink theme and writing to stderr.
    """

    def __init__(self, *, color: bool = True, **kwargs: Any) -> None:
        console = Console(theme=_LOG_THEME, stderr=True, no_color=not color)
        super().__init__(
            console=console,
            show_path=False,
            show_time=True,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
            **kwargs,
        )


# ========================== ShrinkLogger ===================================


class ShrinkLogger:
    """Context-aware logger for elfshrink components.

    Each instance is bound to a *tool_name* (e.g. ``"engine"``) and can
    carry a temporary *operation* context, typically the path of the
    file being processed.

    Usage::

        log = ShrinkLogger("engine", log_file="elfshrink.log", json_logs=True)
        with log.operation("/usr/bin/true"):
            log.info("Minimum required size: %d", size)

    Args:
        tool_name:       Identifying name for the component.
        log_level:       Minimum severity (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file:        Path to the rotating log file. ``None`` disables file logging.
        json_logs:       If ``True`` the file handler emits JSON lines.
        max_bytes:       Maximum log-file size before rotation (default 10 MiB).
        backup_count:    Number of rotated backup files to keep.
        console_output:  If ``True`` attach a colour Rich console handler.
        color:           If ``False`` the console handler emits plain text.
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
        console_output: bool = True,
        color: bool = True,
    ) -> None:
        self._tool_name = tool_name
        self._operation: str | None = None

        level = getattr(logging, log_level.upper(), logging.INFO)

        self._logger = logging.getLogger(f"elfshrink.{tool_name}")
        self._logger.setLevel(level)
        self._logger.propagate = False

        # Prevent duplicate handlers on re-instantiation
        self._logger.handlers.clear()

        if console_output:
            ch = _ColorConsoleHandler(color=color, level=level)
            self._logger.addHandler(ch)

        if log_file:
            file_path = Path(log_file)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                filename=str(file_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            fh.setLevel(level)
            if json_logs:
                fh.setFormatter(_JSONFormatter())
            else:
                fh.setFormatter(
                    logging.Formatter(
                        fmt=(
                            "%(asctime)s | %(levelname)-8s | "
                            "%(name)s | %(message)s"
                        ),
                        datefmt="%Y-%m-%dT%H:%M:%S%z",
                    )
                )
            self._logger.addHandler(fh)

    # ------------------------------------------------------------------ #
    #  Context management -- operation scope
    # ------------------------------------------------------------------ #

    class _OperationContext:
        """Context manager that temporarily binds an operation name."""

        def __init__(self, parent: ShrinkLogger, operation: str) -> None:
            self._parent = parent
            self._operation = operation
            self._prev: str | None = None

        def __enter__(self) -> ShrinkLogger:
            self._prev = self._parent._operation
            self._parent._operation = self._operation
            return self._parent

        def __exit__(self, *exc: Any) -> None:
            self._parent._operation = self._prev

    def operation(self, name: str) -> _OperationContext:
        """Return a context manager that sets the *operation* field.

        While active, every log record will include ``operation=<name>``.
        """
        return self._OperationContext(self, name)

    # ------------------------------------------------------------------ #
    #  Log methods
    # ------------------------------------------------------------------ #

    def _enrich(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        """Inject tool/operation context into the log record via *extra*."""
        extra = kwargs.pop("extra", {}) or {}

        shrink_extra: dict[str, Any] = {}
        standard_keys = {"exc_info", "stack_info", "stacklevel"}
        for key in list(kwargs):
            if key not in standard_keys:
                shrink_extra[key] = kwargs.pop(key)

        extra["tool_name"] = self._tool_name
        extra["operation"] = self._operation
        if shrink_extra:
            extra["shrink_extra"] = shrink_extra

        kwargs["extra"] = extra
        return kwargs

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a DEBUG-level message."""
        kwargs = self._enrich(kwargs)
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an INFO-level message."""
        kwargs = self._enrich(kwargs)
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a WARNING-level message."""
        kwargs = self._enrich(kwargs)
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log an ERROR-level message."""
        kwargs = self._enrich(kwargs)
        self._logger.error(msg, *args, **kwargs)


    # ------------------------------------------------------------------ #
    #  Timing helper
    # ------------------------------------------------------------------ #

    class _TimingContext:
        """Context manager for measuring and logging elapsed time."""

        def __init__(self, logger_inst: ShrinkLogger, label: str) -> None:
            self._logger = logger_inst
            self._label = label
            self._start: float = 0.0

        def __enter__(self) -> ShrinkLogger._TimingContext:
            self._start = time.perf_counter()
            self._logger.debug("Started: %s", self._label)
            return self

        def __exit__(self, *exc: Any) -> None:
            self._logger.debug(
                "Completed: %s (%.3f sec)",
                self._label,
                self.elapsed,
            )

        @property
        def elapsed(self) -> float:
            """Seconds elapsed since entering the context."""
            return time.perf_counter() - self._start

    def timed(self, label: str) -> _TimingContext:
        """Context manager that logs start / finish and elapsed time."""
        return self._TimingContext(self, label)

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def tool_name(self) -> str:
        """Name of the component this logger is bound to."""
        return self._tool_name
