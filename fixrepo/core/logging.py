"""
fixrepo Logging Configuration

Consolidation reports data-quality problems of the repository (odd names,
unresolved segment rows, stale deprecation markers) as warnings and goes
on. This module sets up where those messages go and counts them so a run
can report how noisy its input was.
"""
import logging
import os
import sys
from collections import Counter
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "fixrepo"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_DIR = Path("logs")

ENV_LOG_LEVEL = "FIXREPO_LOG_LEVEL"
ENV_LOG_FORMAT = "FIXREPO_LOG_FORMAT"
ENV_LOG_DIR = "FIXREPO_LOG_DIR"


def setup_logging(
    name: str = PACKAGE_LOGGER,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[Path] = None,
    console: bool = True,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a logger, by default the one every fixrepo module logs under.

    Args:
        name: Logger to configure
        level: Log level name; defaults to FIXREPO_LOG_LEVEL or INFO
        log_file: Optional file name, created in log_dir, receiving the same records
        log_dir: Directory for log_file; defaults to FIXREPO_LOG_DIR or ./logs
        console: Write records to stdout
        format_string: Record format; defaults to FIXREPO_LOG_FORMAT

    Returns:
        The configured logger. Handlers from an earlier call are replaced.

    Examples:
        >>> # Keep the warnings of a full run in a file
        >>> setup_logging(level="WARNING", log_file="consolidate.log")
    """
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)
    if format_string is None:
        format_string = os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)
    if log_dir is None:
        log_dir = Path(os.getenv(ENV_LOG_DIR) or DEFAULT_LOG_DIR)

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        if not isinstance(handler, WarningTally):
            logger.removeHandler(handler)

    formatter = logging.Formatter(format_string, datefmt=DEFAULT_DATE_FORMAT)
    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_dir / log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


class WarningTally(logging.Handler):
    """
    Counts warning records per emitting module.

    While attached it lowers the logger to WARNING if its level is higher,
    so warnings are counted even when the output handlers are set to ERROR.
    Handlers configured by setup_logging keep their own level.

    Attach it to the package logger for the duration of a run:

        >>> with WarningTally() as tally:
        ...     consolidate_repo(repo)
        >>> tally.total
    """

    def __init__(self, logger_name: str = PACKAGE_LOGGER):
        super().__init__(level=logging.WARNING)
        self.logger_name = logger_name
        self.by_source: Counter = Counter()
        self._saved_level: Optional[int] = None

    def emit(self, record: logging.LogRecord) -> None:
        self.by_source[record.name] += 1

    @property
    def total(self) -> int:
        return sum(self.by_source.values())

    def __enter__(self) -> "WarningTally":
        logger = logging.getLogger(self.logger_name)
        if logger.getEffectiveLevel() > logging.WARNING:
            self._saved_level = logger.level
            logger.setLevel(logging.WARNING)
        logger.addHandler(self)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logger = logging.getLogger(self.logger_name)
        logger.removeHandler(self)
        if self._saved_level is not None:
            logger.setLevel(self._saved_level)
            self._saved_level = None
        return False


class LoggerContext:
    """
    Temporarily change the level of one logger.

    Useful for silencing the per-value warnings of a noisy stage, or for
    turning on diff reasons while investigating one message.

    Examples:
        >>> with LoggerContext("fixrepo.consolidation.diff_engine", logging.DEBUG):
        ...     engine.changed("message", "D", 5)
    """

    def __init__(self, logger: Union[logging.Logger, str], level: int):
        self.logger = logging.getLogger(logger) if isinstance(logger, str) else logger
        self.new_level = level
        self.old_level = None

    def __enter__(self):
        self.old_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.old_level is not None:
            self.logger.setLevel(self.old_level)
        return False
