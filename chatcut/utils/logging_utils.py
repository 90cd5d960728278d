"""Logging utilities for the ChatCut editor."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "chatcut"


class DualLogger:
    """Logger that writes to both file and console."""

    def __init__(self, log_file: Optional[str] = None, verbose: bool = True, name: str = LOGGER_NAME):
        """
        Initialize dual logger.

        Args:
            log_file: Path to log file (if None, only console logging)
            verbose: Whether to print to console
            name: Name of the underlying stdlib logger
        """
        self.verbose = verbose
        self.log_file = log_file
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if verbose:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Log everything to file
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def __call__(self, message: str):
        """Allow logger to be called directly."""
        self.info(message)


def _log_file_path(label: str, output_dir: str) -> str:
    safe_label = "".join(c if c.isalnum() or c in (' ', '-', '_') else '_' for c in label)
    safe_label = safe_label[:50].strip().replace(' ', '_') or "session"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return str(Path(output_dir) / f"chatcut_{safe_label}_{timestamp}.log")


def get_logger(
    log_file: Optional[str] = None,
    verbose: bool = True,
    label: Optional[str] = None,
    output_dir: str = "logs"
) -> DualLogger:
    """
    Create a DualLogger instance consistently.

    Args:
        log_file: Optional path to log file (if None and label provided, auto-generates)
        verbose: Whether to print to console
        label: Optional label used to auto-generate the log file name
        output_dir: Directory for auto-generated log files

    Returns:
        DualLogger instance
    """
    if label and not log_file:
        log_file = _log_file_path(label, output_dir)

    return DualLogger(log_file=log_file, verbose=verbose)


class LogHelper:
    """Routes messages to a DualLogger when present, otherwise prints if verbose."""

    def __init__(self, logger: Optional[DualLogger], verbose: bool):
        self.logger = logger
        self.verbose = verbose

    def info(self, msg: str):
        if self.logger:
            self.logger.info(msg)
        elif self.verbose:
            print(msg)

    def error(self, msg: str):
        if self.logger:
            self.logger.error(msg)
        elif self.verbose:
            print(f"[ERROR] {msg}")

    def warning(self, msg: str):
        if self.logger:
            self.logger.warning(msg)
        elif self.verbose:
            print(f"[WARNING] {msg}")

    def debug(self, msg: str):
        if self.logger:
            self.logger.debug(msg)
        elif self.verbose:
            print(f"[DEBUG] {msg}")

    def __call__(self, msg: str):
        self.info(msg)


def get_log_helper(logger: Optional[DualLogger] = None, verbose: bool = False) -> LogHelper:
    """
    Get a consistent logging helper.

    Args:
        logger: Optional DualLogger instance
        verbose: Whether to print if logger is None

    Returns:
        LogHelper with info(), error(), warning(), debug()
    """
    return LogHelper(logger, verbose)
