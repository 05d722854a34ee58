# fleet_dump/A_core/A00_logging.py
"""
Centralized logging configuration for fleet_dump.

Provides consistent logging across all modules with:
- Colored console output for different log levels
- Optional file logging with rotation
- Context manager for operation tracking

Usage:
    from fleet_dump.A_core.A00_logging import get_logger, LogContext

    logger = get_logger(__name__)
    logger.info("Export started")

    with LogContext(logger, "dump all agent policies"):
        # ... export code ...
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator, Optional, Union

ROOT_LOGGER_NAME = "fleet_dump"

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# ANSI color codes for console output
COLORS = {
    "DEBUG": "\033[36m",     # Cyan
    "INFO": "\033[32m",      # Green
    "WARNING": "\033[33m",   # Yellow
    "ERROR": "\033[31m",     # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
    "DIM": "\033[2m",
}


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds colors to console log output.

    Attributes:
        use_colors: Whether to apply ANSI color codes.
    """

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        # Work on a copy so file handlers sharing the record stay uncolored
        record = logging.makeLogRecord(record.__dict__)
        level_color = COLORS.get(record.levelname, COLORS["RESET"])
        record.levelname = f"{level_color}{record.levelname}{COLORS['RESET']}"
        record.name = f"{COLORS['DIM']}{record.name}{COLORS['RESET']}"
        return super().format(record)


class DumpLogger:
    """
    Singleton logger manager for fleet_dump.

    Attributes:
        _instance: Singleton instance.
        _initialized: Whether the manager has been set up.
    """

    _instance: Optional["DumpLogger"] = None
    _initialized: bool = False

    def __new__(cls) -> "DumpLogger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if DumpLogger._initialized:
            return

        self._log_dir: Optional[Path] = None
        self._log_level: int = DEFAULT_LOG_LEVEL
        self._file_handler: Optional[RotatingFileHandler] = None
        self._console_handler: Optional[logging.StreamHandler] = None
        self._run_id: Optional[str] = None

        DumpLogger._initialized = True

    def configure(
        self,
        log_dir: Optional[Union[str, Path]] = None,
        log_level: int = DEFAULT_LOG_LEVEL,
        run_id: Optional[str] = None,
        enable_file_logging: bool = True,
        enable_console_logging: bool = True,
    ) -> None:
        """
        Configure the logging system.

        File logging only happens when both ``enable_file_logging`` is set
        and a ``log_dir`` is given.

        Args:
            log_dir: Directory for log files. Created if it doesn't exist.
            log_level: Minimum log level to capture.
            run_id: Identifier for the current run, used in the log file name.
            enable_file_logging: Whether to write logs to file.
            enable_console_logging: Whether to output to the console.
        """
        self._log_level = log_level
        self._run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        self._log_dir = Path(log_dir) if log_dir else None

        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(log_level)

        for handler in list(root_logger.handlers):
            handler.close()
        root_logger.handlers.clear()
        self._console_handler = None
        self._file_handler = None

        # Console goes to stderr, stdout is kept for command results
        if enable_console_logging:
            self._console_handler = logging.StreamHandler(sys.stderr)
            self._console_handler.setLevel(log_level)
            self._console_handler.setFormatter(
                ColoredFormatter(fmt="%(levelname)-8s | %(message)s", datefmt=DEFAULT_DATE_FORMAT)
            )
            root_logger.addHandler(self._console_handler)

        if enable_file_logging and self._log_dir is not None:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self._log_dir / f"dump_{self._run_id}.log"
            self._file_handler = RotatingFileHandler(
                log_file,
                maxBytes=MAX_LOG_SIZE,
                backupCount=BACKUP_COUNT,
                encoding="utf-8",
            )
            self._file_handler.setLevel(log_level)
            self._file_handler.setFormatter(
                logging.Formatter(fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)
            )
            root_logger.addHandler(self._file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger for the given module, under the fleet_dump namespace."""
        if not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    @property
    def log_file(self) -> Optional[Path]:
        """Path of the active log file, if file logging is on."""
        if self._file_handler is None:
            return None
        return Path(self._file_handler.baseFilename)


_logger_manager = DumpLogger()


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    log_level: int = DEFAULT_LOG_LEVEL,
    run_id: Optional[str] = None,
    enable_file_logging: bool = True,
    enable_console_logging: bool = True,
) -> None:
    """
    Configure fleet_dump logging. Call once at startup.

    Example:
        >>> configure_logging(log_dir="logs", log_level=logging.DEBUG)
    """
    _logger_manager.configure(
        log_dir=log_dir,
        log_level=log_level,
        run_id=run_id,
        enable_file_logging=enable_file_logging,
        enable_console_logging=enable_console_logging,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Fetching agent policies")
    """
    return _logger_manager.get_logger(name)


def get_log_file() -> Optional[Path]:
    """Return the active log file path, or None."""
    return _logger_manager.log_file


@contextmanager
def LogContext(
    logger: logging.Logger,
    operation: str,
    level: int = logging.INFO,
) -> Generator[None, None, None]:
    """
    Log operation start/end with timing.

    Failures are logged and re-raised.

    Example:
        >>> with LogContext(logger, "dump agent policy"):
        ...     dumper.dump_agent_policy(output_dir)
        INFO | Starting: dump agent policy
        INFO | Completed: dump agent policy (0.12s)
    """
    start_time = time.perf_counter()
    logger.log(level, f"Starting: {operation}")
    try:
        yield
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        logger.error(f"Failed: {operation} ({elapsed:.2f}s) - {type(e).__name__}: {e}")
        raise
    else:
        elapsed = time.perf_counter() - start_time
        logger.log(level, f"Completed: {operation} ({elapsed:.2f}s)")

