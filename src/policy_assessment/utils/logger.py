"""Logging setup for policy assessments."""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ..config.settings import Settings

ROOT_LOGGER = "policy_assessment"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(
        level: Union[str, int] = logging.INFO,
        log_file: Optional[Union[str, Path]] = None,
        log_dir: Optional[Union[str, Path]] = None,
        format_string: Optional[str] = None,
        max_file_size: str = "10MB",
        backup_count: int = 5,
        console_output: bool = True
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again once handlers are installed returns the existing logger
    untouched.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Log file name or path
        log_dir: Directory for log files
        format_string: Custom log format
        max_file_size: Maximum size of a log file before rotation
        backup_count: Number of rotated files to keep
        console_output: Whether to log to stderr as well

    Returns:
        Configured logger
    """
    logger = logging.getLogger(ROOT_LOGGER)

    if logger.handlers:
        return logger

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file or log_dir:
        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)
            if not log_file:
                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                log_file = f"policy_assessment_{timestamp}.log"
            log_path = Path(log_dir) / log_file
        else:
            log_path = Path(log_file)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=_parse_file_size(max_file_size),
            backupCount=backup_count
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def setup_logger_from_settings(
        settings: "Settings",
        level: Optional[Union[str, int]] = None,
        console_output: bool = True
) -> logging.Logger:
    """
    Configure the package logger from application settings.

    Args:
        settings: Loaded application settings
        level: Overrides the configured log level
        console_output: Whether to log to stderr as well

    Returns:
        Configured logger
    """
    return setup_logger(
        level=level if level is not None else settings.log_level,
        log_file=settings.log_file,
        max_file_size=settings.log_max_file_size,
        backup_count=settings.log_backup_count,
        console_output=console_output,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger namespaced under the package logger.

    Args:
        name: Module or component name

    Returns:
        Logger for the component
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)


def create_run_logger(assessment_id: str, log_dir: Union[str, Path] = "logs") -> logging.Logger:
    """
    Create a logger that writes one file per assessment run.

    Args:
        assessment_id: Unique id of the assessment
        log_dir: Directory for the log file

    Returns:
        Logger for the run
    """
    logger = logging.getLogger(f"{ROOT_LOGGER}.run.{assessment_id}")

    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)

    log_path = Path(log_dir) / f"run_{assessment_id}.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - [%(levelname)s] - %(message)s"))
    logger.addHandler(file_handler)

    return logger


def _parse_file_size(size_string: str) -> int:
    """
    Convert a size string such as "10MB" into bytes.

    Unparseable values fall back to 10MB.
    """
    size_string = str(size_string).upper().strip()

    units = {
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'TB': 1024 ** 4,
        'B': 1,
    }

    for unit, multiplier in units.items():
        if size_string.endswith(unit):
            try:
                return int(float(size_string[:-len(unit)]) * multiplier)
            except ValueError:
                break

    try:
        return int(size_string)
    except ValueError:
        return 10 * 1024 * 1024
