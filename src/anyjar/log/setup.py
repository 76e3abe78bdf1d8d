import sys
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from anyjar import settings
from anyjar.log.handler import BufferedFileHandler

_installed_handlers: List[logging.Handler] = []


class SubprocessLogFilter(logging.Filter):
    """
    This filter identifies logs coming from the subprocess loggers
    and keeps them off the console, where the console sink already echoes them.
    """
    def filter(self, record):
        # The 'proc.' prefix is used by the supervisor's stream relays
        return not record.name.startswith('proc.')


def get_log_file_path(logs_dir: Optional[Path] = None) -> Path:
    """
    Builds the timestamped path of this run's log file.

    :param logs_dir: Directory for log files, defaults to settings.LOGS_DIR.
    :return: The path of the log file.
    """
    logs_dir = logs_dir if logs_dir is not None else settings.LOGS_DIR
    return logs_dir / datetime.now().strftime(settings.LOG_FILE_NAME_FORMAT)


def setup_logging(console_level: int = logging.WARNING, logs_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Configures the root logger for the launcher.
    This sets up handlers for the console and the per-run log file,
    removing any handlers a previous call installed to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    :param logs_dir: Directory for the log file, defaults to settings.LOGS_DIR.
    :return: The path of the log file, or None if the file handler could not be created.
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)
    shutdown_logging()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'))
    console_handler.addFilter(SubprocessLogFilter())
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    # --- File Handler (always enabled for all levels) ---
    log_file_path = get_log_file_path(logs_dir)
    try:
        file_handler = BufferedFileHandler(log_file_path)
    except OSError as e:
        root_logger.error(f"Failed to initialize log file handler at '{log_file_path}': {e}. Logging to file is disabled.")
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(settings.LOG_FILE_FORMAT, datefmt=settings.LOG_DATE_FORMAT))
    root_logger.addHandler(file_handler)
    _installed_handlers.append(file_handler)
    return log_file_path


def shutdown_logging() -> None:
    """Flushes, closes and detaches every handler installed by setup_logging."""
    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.flush()
        handler.close()
